"""
playhub.identity — Authenticated caller
========================================

The identity provider hands the core an opaque, already-verified
``Identity``.  Only owner-or-admin checks are made against it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: int
    display_name: str
    is_admin: bool = False

    def owns(self, owner_id: int | None) -> bool:
        return owner_id is not None and owner_id == self.user_id

    def can_moderate(self, owner_id: int | None) -> bool:
        """Owner or administrator."""
        return self.is_admin or self.owns(owner_id)

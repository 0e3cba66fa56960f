"""
playhub.services.report_service — Moderation reports
=====================================================

One report per (entity, reporter).  A repeat is rejected outright; the
original report is never replaced.  Reviewing reports is moderation
tooling and lives elsewhere.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError

from playhub.constants import MAX_REASON_LENGTH, ThrottledAction, clean_text
from playhub.database.engine import get_session
from playhub.database.models import Report
from playhub.engine.throttle import ActionThrottle
from playhub.errors import ConflictError, ValidationError
from playhub.identity import Identity
from playhub.services.entities import enforce_throttle, get_or_create_user, load_entity

logger = logging.getLogger(__name__)


def file_report(
    engine: Engine,
    entity_type: str,
    entity_id: int,
    reporter: Identity,
    reason: str,
    *,
    throttle: ActionThrottle | None = None,
) -> Report:
    reason = clean_text(reason)
    if not reason:
        raise ValidationError("A report needs a reason")
    if len(reason) > MAX_REASON_LENGTH:
        raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters")

    try:
        with get_session(engine) as session:
            load_entity(session, entity_type, entity_id, for_update=True)
            get_or_create_user(session, reporter.user_id, reporter.display_name)
            already = session.scalar(
                select(Report.id).where(
                    Report.entity_type == entity_type,
                    Report.entity_id == entity_id,
                    Report.user_id == reporter.user_id,
                )
            )
            if already is not None:
                raise ConflictError("You have already reported this content")

            report = Report(
                entity_type=str(entity_type),
                entity_id=entity_id,
                user_id=reporter.user_id,
                reason=reason,
            )
            session.add(report)
            session.flush()
            # Throttle only once the row is known to insert cleanly
            enforce_throttle(throttle, reporter.user_id, ThrottledAction.FILE_REPORT)
            session.refresh(report)
    except IntegrityError as exc:
        raise ConflictError("You have already reported this content") from exc

    logger.info("Report %d filed on %s %d by user %d",
                report.id, entity_type, entity_id, reporter.user_id)
    return report

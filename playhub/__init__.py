"""
PlayHub — Community Backend for Gamers
=======================================
Tracks each member's game library and progress, hosts forum posts and
game reviews with threaded discussion, voting and moderation reports,
and unlocks achievements as members play, post and review.

Package layout::

    playhub/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Post tags, review score bounds, throttle kinds
    ├── errors.py          # Typed failure taxonomy
    ├── identity.py        # Authenticated caller (owner / admin checks)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # All ORM models
    │   └── seed.py        # Default achievement catalogue
    ├── engine/
    │   ├── achievements.py # Rule evaluation (pure)
    │   ├── votes.py       # Vote toggle resolution (pure)
    │   └── throttle.py    # Per-user action throttle
    ├── services/
    │   ├── entities.py    # Post/Review lookup + ownership checks
    │   ├── thread_service.py   # Comments and replies
    │   ├── vote_service.py     # Like/dislike ledger
    │   ├── report_service.py   # Moderation reports
    │   ├── post_service.py     # Forum posts
    │   ├── review_service.py   # Game reviews
    │   ├── progress_service.py # Per-user-per-game progress
    │   ├── user_service.py     # Accounts, logins, stats
    │   ├── achievement_service.py # Counter recompute + idempotent grants
    │   ├── catalog.py     # Game catalog collaborator
    │   └── views.py       # Entity → response dict
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT identity, engine, throttle
        └── routes/        # Posts, reviews, progress, users, achievements
"""

__version__ = "0.1.0"

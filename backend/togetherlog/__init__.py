"""
TogetherLog Backend - Application Package Initializer
=====================================================

What: Marks the `togetherlog` directory as a Python package.
Who:  Imported by uvicorn (togetherlog.main:app), Alembic and pytest.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │      Routes (API + Worker Layer)    │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Smart Page engine, geocoding,
    │                                     │    ownership checks, write-back
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The Smart Page rules engine and the geocoding rate limiter have no HTTP or
    database imports and can be exercised on their own.
"""

__version__ = "1.0.0"

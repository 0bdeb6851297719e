"""
Real Estate API - Application Package Initializer
==================================================

What: Marks the `realestate` directory as a Python package.
Who:  Imported by uvicorn (`realestate.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is a layered FastAPI application:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependencies
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, concurrency checks
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never see HTTP objects.
"""

__version__ = "1.0.0"

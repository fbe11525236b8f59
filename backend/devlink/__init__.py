"""
DevLink Backend — Application Package Initializer
===================================================

What:  Marks the `devlink` directory as a Python package.
Who:   Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    This backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← State machine, ownership checks
    ├─────────────────────────────────────┤
    │   Repositories & Events (Access)    │  ← Queries; post-commit side effects
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the session directly; services receive repositories
    built per request by FastAPI dependencies.
"""

__version__ = "1.0.0"

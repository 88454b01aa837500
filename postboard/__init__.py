"""
Postboard Backend — Application Package
========================================

What: Blog-style HTTP backend (users, posts, tags, image uploads).
How:  Layered the same way in every module:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Dependencies (auth gate, sessions) │  ← per-request wiring
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← users, posts, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

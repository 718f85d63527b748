"""
Snippetbox — Application Package
==================================

A small snippet-sharing web application built on FastAPI.

Layers:

    ┌─────────────────────────────────────┐
    │   Middleware chains (middleware/)   │  ← recovery, sessions, CSRF, auth
    ├─────────────────────────────────────┤
    │         Routes (routes/)            │  ← decode, validate, render/redirect
    ├─────────────────────────────────────┤
    │  Services · Forms · Sessions        │  ← accounts, snippets, validation
    ├─────────────────────────────────────┤
    │  Models & Schemas · Database        │  ← SQLAlchemy ORM + pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

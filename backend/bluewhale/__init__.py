"""
Blue Whale Protocol Backend
=============================

A location-aware content sharing API: users post text or PDF content tagged
with a place, follow each other, like and comment, and browse global,
local, personalized and full-text search feeds.

Layers:
    ┌─────────────────────────────────────┐
    │     Routes (FastAPI routers)        │  HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services                        │  business rules, raise BlueWhaleError
    ├─────────────────────────────────────┤
    │     Models & Schemas                │  SQLAlchemy ORM + Pydantic contracts
    ├─────────────────────────────────────┤
    │     Database                        │  async SQLAlchemy sessions (asyncpg)
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

"""
Per-domain repository modules for database access.

Each module exposes plain functions taking a SQLAlchemy ``Session`` first;
routers and services import them as ``from tourcrm.db.repositories import
leads as lead_repo``.
"""

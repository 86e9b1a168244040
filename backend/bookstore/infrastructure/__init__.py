"""Infrastructure Layer — database sessions, logging, background jobs.

Invariants:
    - Infrastructure never imports from core/ domain logic (errors excepted)
    - All SQLAlchemy failures mapped to DatabaseError

Design Decisions:
    - Thin wrappers over raw clients (ADR: single responsibility)
"""

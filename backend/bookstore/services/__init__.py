"""Services Layer — transactional workflows over the ORM (imperative shell).

Invariants:
    - One service class per workflow: inventory, orders, payments, cancellation, statistics
    - Services own the transaction boundary (commit on success, rollback on domain error)
    - Every state guard delegates to a pure function in core/

Design Decisions:
    - Services receive AsyncSession explicitly (no global session, no ambient principal)
"""

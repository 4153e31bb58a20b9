# Overview: Transaction and row-locking helpers shared by the lifecycle services.

from __future__ import annotations

from contextlib import contextmanager


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic(session):
    """
    Run a multi-statement mutation as a single unit of work.

    Commits when the block finishes, rolls back and re-raises on any
    exception. No retries: callers either see the whole change or none of it.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise

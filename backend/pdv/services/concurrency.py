# Overview: Service-layer helpers for transactional locking on the active database.

from __future__ import annotations

from sqlalchemy import text


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() covers it there.
    """
    return query.with_for_update()


def begin_write(session) -> None:
    """
    Open a writer transaction before any locked reads.

    On SQLite this takes the database write lock up front (BEGIN IMMEDIATE),
    so two writers cannot both read pre-decrement rows. Other backends rely
    on lock_for_update() inside the normal transaction.
    """
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, SessionTransactionOrigin


@contextmanager
def smart_transaction(session: Session) -> Iterator[Session]:
    """
    Run the enclosed block as one unit of work on the given Session.

    If the caller explicitly began a transaction, the block becomes a
    SAVEPOINT (begin_nested) and the caller decides when to commit.
    A transaction the session merely autobegan (earlier reads, lazy loads)
    is committed first, and the block then runs in a transaction of its own
    that commits when the block exits.
    Any exception leaving the block rolls back everything the block wrote.

    Usage:
        with smart_transaction(db):
            ... DB work ...
    """
    if session.in_transaction():
        if session.get_transaction().origin is SessionTransactionOrigin.AUTOBEGIN:
            session.commit()
    if session.in_transaction():
        cm = session.begin_nested()
    else:
        cm = session.begin()
    with cm:
        yield session

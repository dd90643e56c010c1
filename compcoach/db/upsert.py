"""
Insert-if-absent against a unique column.

PostgreSQL and SQLite get a native ON CONFLICT DO NOTHING; any other backend falls back
to inserting and treating a unique violation as "someone else got there first".
"""
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def insert_if_absent(session: Session, model, conflict_column, values: dict) -> bool:
    """Insert a row unless one with the same conflict_column exists. Returns True if inserted.

    The caller owns the transaction. On the fallback path a lost race rolls the session back.
    """
    insert_fn = _CONFLICT_INSERTS.get(session.get_bind().dialect.name)
    if insert_fn is not None:
        stmt = (
            insert_fn(model.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[conflict_column.name])
        )
        result = session.execute(stmt)
        return result.rowcount == 1

    try:
        session.add(model(**values))
        session.flush()
        return True
    except IntegrityError:
        session.rollback()
        return False

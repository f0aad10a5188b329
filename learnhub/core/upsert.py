"""
Dialect-aware insert-or-update.

SQLite and PostgreSQL both support INSERT ... ON CONFLICT DO UPDATE with
RETURNING; SQLAlchemy exposes it only through the dialect-specific
insert() constructs, so the right one is picked from the session's bind.
"""
from typing import Any, Dict, List

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.exceptions import UnsupportedDialectError


_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession, model):
    """Return an ON CONFLICT capable insert() for the session's dialect."""
    dialect_name = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect_name)
    if insert is None:
        raise UnsupportedDialectError(dialect_name)
    return insert(model)


async def upsert_one(
    db: AsyncSession,
    model,
    conflict_columns: List[str],
    values: Dict[str, Any],
    update_values: Dict[str, Any],
):
    """
    Insert `values`, or apply `update_values` to the row that already owns
    the unique key `conflict_columns`. Returns the resulting ORM instance.
    
    Does not commit.
    """
    stmt = (
        dialect_insert(db, model)
        .values(**values)
        .on_conflict_do_update(index_elements=conflict_columns, set_=update_values)
        .returning(model)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one()

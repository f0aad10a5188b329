"""
Single round-trip table existence probe.

Builds one SELECT that returns a single row with one boolean column per
requested table, so checking N optional tables costs one query.
"""
import re
from typing import Dict, Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.exceptions import SchemaProbeError


_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def _flag_expression(dialect_name: str, param: str) -> str:
    if dialect_name == "postgresql":
        return f"to_regclass(:{param}) IS NOT NULL"
    if dialect_name == "sqlite":
        return f"EXISTS (SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = :{param})"
    return f"EXISTS (SELECT 1 FROM information_schema.tables WHERE table_name = :{param})"


def validate_table_names(table_names: Sequence[str]) -> None:
    """Raise ValueError unless `table_names` is a non-empty list of plain lowercase identifiers."""
    if not table_names:
        raise ValueError("At least one table name is required")
    for name in table_names:
        # Names are interpolated as column aliases
        if not isinstance(name, str) or not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid table name: {name!r}")


def build_probe_sql(dialect_name: str, table_names: Sequence[str]):
    """Return (sql, params) for the existence probe on the given dialect."""
    validate_table_names(table_names)
    
    columns = []
    params = {}
    for index, name in enumerate(table_names):
        param = f"t{index}"
        columns.append(f"{_flag_expression(dialect_name, param)} AS {name}")
        params[param] = f"public.{name}" if dialect_name == "postgresql" else name
    
    return "SELECT " + ", ".join(columns), params


async def fetch_table_flags(db: AsyncSession, table_names: Sequence[str]) -> Dict[str, bool]:
    """
    Ask storage, in one query, which of `table_names` exist.
    
    Raises whatever the driver raises on connection/timeout errors, and
    SchemaProbeError when the result row is missing or incomplete.
    """
    sql, params = build_probe_sql(db.get_bind().dialect.name, table_names)
    result = await db.execute(text(sql), params)
    row = result.mappings().first()
    
    if row is None:
        raise SchemaProbeError("Table existence probe returned no row")
    
    missing = [name for name in table_names if name not in row]
    if missing:
        raise SchemaProbeError(f"Table existence probe is missing flags for: {', '.join(missing)}")
    
    return {name: bool(row[name]) for name in table_names}

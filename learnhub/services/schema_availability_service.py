"""
learnhub/services/schema_availability_service.py
Final Assessment Schema Gate

PURPOSE:
- Answer "are the optional final-assessment tables present?" cheaply
- Let course assembly branch on feature availability without crashing
  when the schema has not been migrated yet

RULES:
- One existence query per check, covering all tables in one round trip
- Available only if the query succeeds AND every table exists
- A completed check (True or False) is cached
- A failed check (connection error, timeout, bad result) returns False
  and is NOT cached, so the next call queries again
- No locking: concurrent first callers may each issue the query, then
  everyone converges on the cached value
"""
import logging
import time
from typing import Awaitable, Callable, Dict, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.config.settings import settings
from learnhub.core.schema_probe import fetch_table_flags, validate_table_names

logger = logging.getLogger(__name__)


FINAL_ASSESSMENT_TABLES = (
    "final_tests",
    "final_test_questions",
    "final_test_attempts",
)

TableProbe = Callable[[AsyncSession, Sequence[str]], Awaitable[Dict[str, bool]]]


class SchemaAvailabilityCache:
    """
    Cached, fail-closed existence check for a fixed set of tables.
    
    One shared instance per process is the normal setup (see
    final_assessment_tables below); tests and tenants that need isolated
    state construct their own.
    
    Invalid table names raise ValueError here, at construction, so that
    is_available() only ever fails closed on storage problems.
    """
    
    def __init__(
        self,
        table_names: Sequence[str] = FINAL_ASSESSMENT_TABLES,
        ttl_seconds: Optional[int] = None,
        probe: TableProbe = fetch_table_flags,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.table_names = tuple(table_names)
        validate_table_names(self.table_names)
        # Zero or negative means no expiry
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None and ttl_seconds > 0 else None
        self._probe = probe
        self._clock = clock
        self._value: Optional[bool] = None
        self._checked_at: float = 0.0
    
    @property
    def cached_value(self) -> Optional[bool]:
        """Cached result, or None when no successful check is remembered."""
        if self._value is None or self._is_expired():
            return None
        return self._value
    
    def _is_expired(self) -> bool:
        if self.ttl_seconds is None:
            return False
        return self._clock() - self._checked_at >= self.ttl_seconds
    
    async def is_available(self, db: AsyncSession) -> bool:
        cached = self.cached_value
        if cached is not None:
            logger.debug(f"Schema availability cache hit for {self.table_names}: {cached}")
            return cached
        
        try:
            flags = await self._probe(db, self.table_names)
            available = all(bool(flags[name]) for name in self.table_names)
        except Exception as e:
            logger.warning(
                f"Failed to verify tables {', '.join(self.table_names)}; "
                f"assuming unavailable: {str(e)}"
            )
            return False
        
        self._value = available
        self._checked_at = self._clock()
        
        if not available:
            missing = [name for name in self.table_names if not flags[name]]
            logger.warning(f"Optional tables not available (missing: {', '.join(missing)}). Skipping related queries.")
        
        return available
    
    def clear_cache(self) -> None:
        """Forget the cached result, e.g. after running a migration."""
        self._value = None
        self._checked_at = 0.0


# Process-wide instance used by course assembly
final_assessment_tables = SchemaAvailabilityCache(
    FINAL_ASSESSMENT_TABLES,
    ttl_seconds=settings.SCHEMA_CACHE_TTL_SECONDS,
)


async def are_final_assessment_tables_available(db: AsyncSession) -> bool:
    return await final_assessment_tables.is_available(db)


def clear_final_assessment_tables_cache() -> None:
    final_assessment_tables.clear_cache()


async def final_assessment_enabled(db: AsyncSession) -> bool:
    """
    Feature gate for final assessments: the FEATURE_FINAL_ASSESSMENT flag
    must be on AND the tables must exist. With the flag off no query runs.
    """
    if not settings.FEATURE_FINAL_ASSESSMENT:
        return False
    return await final_assessment_tables.is_available(db)

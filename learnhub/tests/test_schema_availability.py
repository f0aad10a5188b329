"""
Final Assessment Schema Gate Tests

Coverage:
- All tables present -> available, cached
- Any table missing -> unavailable, cached
- Probe failure -> unavailable, NOT cached, retried next call
- clear_cache / TTL expiry force a new check
- Zero, negative or malformed TTL settings fall back to "no expiry"
- Invalid table names fail at construction, not per call
- Concurrent first callers converge
- Real probe against SQLite
"""
import asyncio
import logging

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from learnhub.config.settings import get_int_env, settings
from learnhub.core.schema_probe import build_probe_sql, fetch_table_flags
from learnhub.exceptions import SchemaProbeError
from learnhub.services import schema_availability_service
from learnhub.services.schema_availability_service import (
    FINAL_ASSESSMENT_TABLES,
    SchemaAvailabilityCache,
    are_final_assessment_tables_available,
    clear_final_assessment_tables_cache,
    final_assessment_enabled,
)


ALL_PRESENT = {
    "final_tests": True,
    "final_test_questions": True,
    "final_test_attempts": True,
}


class ScriptedProbe:
    """Probe returning (or raising) the scripted outcomes in order; last one repeats."""
    
    def __init__(self, *outcomes, delay: float = 0.0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.calls = 0
    
    async def __call__(self, db, table_names):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return dict(outcome)


class FakeClock:
    def __init__(self):
        self.now = 1000.0
    
    def __call__(self):
        return self.now


# =============================================================================
# Cache semantics
# =============================================================================

class TestSchemaAvailabilityCache:
    
    async def test_available_when_all_tables_exist(self):
        probe = ScriptedProbe(ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is True
        assert probe.calls == 1
        assert gate.cached_value is True
    
    @pytest.mark.parametrize("missing", FINAL_ASSESSMENT_TABLES)
    async def test_unavailable_when_any_table_missing(self, missing):
        flags = dict(ALL_PRESENT, **{missing: False})
        probe = ScriptedProbe(flags)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
    
    async def test_result_is_cached(self):
        probe = ScriptedProbe(ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        first = await gate.is_available(db=None)
        second = await gate.is_available(db=None)
        
        assert first is True
        assert second is True
        assert probe.calls == 1
    
    async def test_negative_result_is_cached(self):
        probe = ScriptedProbe(dict(ALL_PRESENT, final_test_attempts=False), ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
        assert await gate.is_available(db=None) is False
        assert probe.calls == 1
        assert gate.cached_value is False
    
    async def test_truthy_non_boolean_flags(self):
        probe = ScriptedProbe({"final_tests": 1, "final_test_questions": "t", "final_test_attempts": 1})
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is True
    
    async def test_query_failure_returns_false(self):
        probe = ScriptedProbe(ConnectionError("connection error"))
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
    
    async def test_query_failure_is_not_cached(self):
        probe = ScriptedProbe(ConnectionError("connection error"), ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
        assert gate.cached_value is None
        
        assert await gate.is_available(db=None) is True
        assert probe.calls == 2
        
        # Now cached
        assert await gate.is_available(db=None) is True
        assert probe.calls == 2
    
    async def test_repeated_failures_query_every_time(self):
        probe = ScriptedProbe(TimeoutError("timed out"))
        gate = SchemaAvailabilityCache(probe=probe)
        
        for _ in range(3):
            assert await gate.is_available(db=None) is False
        assert probe.calls == 3
    
    async def test_malformed_probe_result_is_not_cached(self):
        probe = ScriptedProbe({"final_tests": True}, ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
        assert gate.cached_value is None
        assert await gate.is_available(db=None) is True
        assert probe.calls == 2
    
    async def test_probe_error_is_not_cached(self):
        probe = ScriptedProbe(SchemaProbeError("no row"), ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
        assert await gate.is_available(db=None) is True
    
    async def test_clear_cache_forces_new_check(self):
        probe = ScriptedProbe(dict(ALL_PRESENT, final_tests=False), ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe)
        
        assert await gate.is_available(db=None) is False
        
        # e.g. after running the migration
        gate.clear_cache()
        assert gate.cached_value is None
        
        assert await gate.is_available(db=None) is True
        assert probe.calls == 2
    
    async def test_ttl_expiry_forces_new_check(self):
        clock = FakeClock()
        probe = ScriptedProbe(ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe, ttl_seconds=60, clock=clock)
        
        await gate.is_available(db=None)
        clock.now += 59
        await gate.is_available(db=None)
        assert probe.calls == 1
        
        clock.now += 1
        await gate.is_available(db=None)
        assert probe.calls == 2
    
    async def test_no_ttl_caches_for_process_lifetime(self):
        clock = FakeClock()
        probe = ScriptedProbe(ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe, clock=clock)
        
        await gate.is_available(db=None)
        clock.now += 10 ** 9
        await gate.is_available(db=None)
        assert probe.calls == 1
    
    @pytest.mark.parametrize("ttl", [0, -5])
    async def test_non_positive_ttl_means_no_expiry(self, ttl):
        clock = FakeClock()
        probe = ScriptedProbe(ALL_PRESENT)
        gate = SchemaAvailabilityCache(probe=probe, ttl_seconds=ttl, clock=clock)
        
        assert gate.ttl_seconds is None
        for _ in range(3):
            assert await gate.is_available(db=None) is True
            clock.now += 1
        assert probe.calls == 1
    
    @pytest.mark.parametrize("table_names", [[], ["final_tests; DROP TABLE users"], ["FinalTests"]])
    def test_invalid_table_names_fail_at_construction(self, table_names):
        with pytest.raises(ValueError):
            SchemaAvailabilityCache(table_names=table_names, probe=ScriptedProbe(ALL_PRESENT))
    
    async def test_instances_are_isolated(self):
        present = SchemaAvailabilityCache(probe=ScriptedProbe(ALL_PRESENT))
        absent = SchemaAvailabilityCache(probe=ScriptedProbe(dict(ALL_PRESENT, final_tests=False)))
        
        assert await present.is_available(db=None) is True
        assert await absent.is_available(db=None) is False
        assert present.cached_value is True
    
    async def test_concurrent_first_callers_converge(self):
        probe = ScriptedProbe(ALL_PRESENT, delay=0.01)
        gate = SchemaAvailabilityCache(probe=probe)
        
        results = await asyncio.gather(*(gate.is_available(db=None) for _ in range(5)))
        
        assert results == [True] * 5
        # Benign duplicate queries before the first result lands
        assert 1 <= probe.calls <= 5
        
        calls = probe.calls
        assert await gate.is_available(db=None) is True
        assert probe.calls == calls
    
    async def test_concurrent_failure_does_not_erase_success(self):
        probe = ScriptedProbe(ALL_PRESENT, ConnectionError("reset by peer"), delay=0.01)
        gate = SchemaAvailabilityCache(probe=probe)
        
        results = await asyncio.gather(gate.is_available(db=None), gate.is_available(db=None))
        
        assert sorted(results) == [False, True]
        assert gate.cached_value is True


# =============================================================================
# Shared instance and feature flag
# =============================================================================

class TestFinalAssessmentGate:
    
    @pytest.fixture(autouse=True)
    def reset_shared_cache(self):
        clear_final_assessment_tables_cache()
        yield
        clear_final_assessment_tables_cache()
    
    async def test_module_functions_use_shared_instance(self, monkeypatch):
        probe = ScriptedProbe(ALL_PRESENT)
        monkeypatch.setattr(schema_availability_service.final_assessment_tables, "_probe", probe)
        
        assert await are_final_assessment_tables_available(db=None) is True
        assert await are_final_assessment_tables_available(db=None) is True
        assert probe.calls == 1
        
        clear_final_assessment_tables_cache()
        assert await are_final_assessment_tables_available(db=None) is True
        assert probe.calls == 2
    
    async def test_flag_off_skips_query(self, monkeypatch):
        probe = ScriptedProbe(ALL_PRESENT)
        monkeypatch.setattr(schema_availability_service.final_assessment_tables, "_probe", probe)
        monkeypatch.setattr(settings, "FEATURE_FINAL_ASSESSMENT", False)
        
        assert await final_assessment_enabled(db=None) is False
        assert probe.calls == 0
    
    async def test_flag_on_delegates_to_cache(self, monkeypatch):
        probe = ScriptedProbe(dict(ALL_PRESENT, final_test_questions=False))
        monkeypatch.setattr(schema_availability_service.final_assessment_tables, "_probe", probe)
        monkeypatch.setattr(settings, "FEATURE_FINAL_ASSESSMENT", True)
        
        assert await final_assessment_enabled(db=None) is False
        assert probe.calls == 1


# =============================================================================
# Existence probe
# =============================================================================

class TestSchemaProbe:
    
    def test_single_select_for_all_tables(self):
        sql, params = build_probe_sql("sqlite", FINAL_ASSESSMENT_TABLES)
        
        assert sql.count("SELECT 1 FROM sqlite_master") == 3
        assert sql.startswith("SELECT ")
        assert set(params.values()) == set(FINAL_ASSESSMENT_TABLES)
        for name in FINAL_ASSESSMENT_TABLES:
            assert f"AS {name}" in sql
    
    def test_postgres_uses_to_regclass(self):
        sql, params = build_probe_sql("postgresql", FINAL_ASSESSMENT_TABLES)
        
        assert sql.count("to_regclass") == 3
        assert "public.final_tests" in params.values()
    
    def test_rejects_unsafe_table_names(self):
        with pytest.raises(ValueError):
            build_probe_sql("sqlite", ["final_tests; DROP TABLE users"])
        with pytest.raises(ValueError):
            build_probe_sql("sqlite", [])
    
    async def test_reports_missing_tables(self, db):
        flags = await fetch_table_flags(db, FINAL_ASSESSMENT_TABLES)
        
        assert flags == {name: False for name in FINAL_ASSESSMENT_TABLES}
    
    async def test_reports_partial_schema(self, db):
        await db.execute(text("CREATE TABLE final_tests (id INTEGER PRIMARY KEY)"))
        await db.commit()
        
        flags = await fetch_table_flags(db, FINAL_ASSESSMENT_TABLES)
        
        assert flags["final_tests"] is True
        assert flags["final_test_questions"] is False
    
    async def test_gate_against_real_schema(self, db):
        gate = SchemaAvailabilityCache()
        assert await gate.is_available(db) is False
        
        for name in FINAL_ASSESSMENT_TABLES:
            await db.execute(text(f"CREATE TABLE {name} (id INTEGER PRIMARY KEY)"))
        await db.commit()
        
        # Still the cached negative until cleared
        assert await gate.is_available(db) is False
        gate.clear_cache()
        assert await gate.is_available(db) is True
    
    async def test_gate_fails_closed_on_driver_error(self, mock_session):
        session = mock_session(error=OperationalError("SELECT", {}, Exception("connection refused")))
        gate = SchemaAvailabilityCache()
        
        assert await gate.is_available(session) is False
        assert gate.cached_value is None
        assert len(session.executed) == 1
    
    async def test_gate_fails_closed_on_empty_result(self, mock_session):
        session = mock_session(results=[[]])
        gate = SchemaAvailabilityCache()
        
        assert await gate.is_available(session) is False
        assert gate.cached_value is None


class TestTtlSetting:
    
    def test_unset_returns_default(self, monkeypatch):
        monkeypatch.delenv("SCHEMA_CACHE_TTL_SECONDS", raising=False)
        assert get_int_env("SCHEMA_CACHE_TTL_SECONDS") is None
        assert get_int_env("SCHEMA_CACHE_TTL_SECONDS", 30) == 30
    
    def test_blank_returns_default(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_CACHE_TTL_SECONDS", "  ")
        assert get_int_env("SCHEMA_CACHE_TTL_SECONDS", 30) == 30
    
    def test_parses_integer(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_CACHE_TTL_SECONDS", "60")
        assert get_int_env("SCHEMA_CACHE_TTL_SECONDS") == 60
    
    @pytest.mark.parametrize("raw", ["60s", "1.5", "sixty"])
    def test_malformed_value_falls_back_with_warning(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("SCHEMA_CACHE_TTL_SECONDS", raw)
        
        with caplog.at_level(logging.WARNING, logger="learnhub.config.settings"):
            assert get_int_env("SCHEMA_CACHE_TTL_SECONDS") is None
            assert get_int_env("SCHEMA_CACHE_TTL_SECONDS", 30) == 30
        
        assert "SCHEMA_CACHE_TTL_SECONDS" in caplog.text
        assert raw in caplog.text
    
    async def test_malformed_setting_yields_lifetime_cache(self, monkeypatch):
        monkeypatch.setenv("SCHEMA_CACHE_TTL_SECONDS", "60s")
        clock = FakeClock()
        probe = ScriptedProbe(ALL_PRESENT)
        gate = SchemaAvailabilityCache(
            probe=probe,
            ttl_seconds=get_int_env("SCHEMA_CACHE_TTL_SECONDS"),
            clock=clock,
        )
        
        await gate.is_available(db=None)
        clock.now += 10 ** 6
        await gate.is_available(db=None)
        assert probe.calls == 1

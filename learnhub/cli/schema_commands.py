"""
Schema CLI Commands

Operations: init, check
"""
import asyncio

from learnhub.services.schema_availability_service import (
    SchemaAvailabilityCache,
    FINAL_ASSESSMENT_TABLES,
)


class SchemaCommand:
    """Schema CLI command handler."""
    
    def __init__(self, session_factory=None):
        self.session_factory = session_factory
    
    def execute(self, args) -> int:
        """Execute schema command."""
        if args.schema_action == "init":
            return asyncio.run(self._init())
        elif args.schema_action == "check":
            return asyncio.run(self._check())
        else:
            print("Error: Unknown schema action")
            return 1
    
    async def _init(self) -> int:
        """Create the course, chapter and progress tables."""
        from learnhub.database import init_db, close_db
        
        print("=== Database Init ===")
        try:
            await init_db()
        finally:
            await close_db()
        print("✓ Tables ready")
        return 0
    
    async def _check(self) -> int:
        """Check the final assessment tables with a fresh (uncached) gate."""
        print("=== Final Assessment Tables ===")
        gate = SchemaAvailabilityCache(FINAL_ASSESSMENT_TABLES)
        
        if self.session_factory is not None:
            async with self.session_factory() as db:
                available = await gate.is_available(db)
        else:
            from learnhub.database import AsyncSessionLocal, close_db
            try:
                async with AsyncSessionLocal() as db:
                    available = await gate.is_available(db)
            finally:
                await close_db()
        
        for name in FINAL_ASSESSMENT_TABLES:
            print(f"  {name}")
        if available:
            print("✓ Final assessment tables available")
            return 0
        print("✗ Final assessment tables unavailable (missing or check failed)")
        return 2

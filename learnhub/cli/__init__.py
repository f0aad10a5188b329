#!/usr/bin/env python3
"""
learnhub operator CLI

Usage:
    python -m learnhub.cli <command> [options]
    
Commands:
    schema      Optional schema checks (final assessment tables)
    progress    Inspect and record learner progress

Environment:
    DATABASE_URL    Database connection string (sqlite+aiosqlite / postgresql+asyncpg)
    LOG_LEVEL       DEBUG|INFO|WARNING|ERROR
"""
import sys
import argparse
import logging
from typing import Optional

from learnhub.config.settings import settings
from learnhub.cli.progress_commands import ProgressCommand
from learnhub.cli.schema_commands import SchemaCommand


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="learnhub",
        description="Learner progress and statistics CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s schema check
  %(prog)s progress stats --user user_123
  %(prog)s progress course --user user_123 --course 6f1c...
  %(prog)s progress complete --user user_123 --chapter 9ab2...
        """
    )
    
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)"
    )
    
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    
    # Schema commands
    schema_parser = subparsers.add_parser("schema", help="Optional schema checks")
    schema_subparsers = schema_parser.add_subparsers(dest="schema_action")
    schema_subparsers.add_parser("init", help="Create course, chapter and progress tables")
    schema_subparsers.add_parser("check", help="Check final assessment tables")
    
    # Progress commands
    progress_parser = subparsers.add_parser("progress", help="Learner progress")
    progress_subparsers = progress_parser.add_subparsers(dest="progress_action")
    
    # progress stats
    stats_parser = progress_subparsers.add_parser("stats", help="Account-wide stats for a user")
    stats_parser.add_argument("--user", "-u", required=True, help="User id")
    
    # progress courses
    courses_parser = progress_subparsers.add_parser("courses", help="Progress of every course a user owns")
    courses_parser.add_argument("--user", "-u", required=True, help="User id")
    
    # progress course
    course_parser = progress_subparsers.add_parser("course", help="Progress of one course")
    course_parser.add_argument("--user", "-u", required=True, help="User id")
    course_parser.add_argument("--course", "-c", required=True, help="Course id")
    
    # progress chapter / complete / incomplete / touch
    for action, help_text in (
        ("chapter", "Show chapter progress"),
        ("complete", "Mark a chapter completed"),
        ("incomplete", "Mark a chapter incomplete"),
        ("touch", "Record a chapter access"),
    ):
        chapter_parser = progress_subparsers.add_parser(action, help=help_text)
        chapter_parser.add_argument("--user", "-u", required=True, help="User id")
        chapter_parser.add_argument("--chapter", required=True, help="Chapter id")
    
    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)
    
    if not parsed.command:
        parser.print_help()
        return 1
    
    # Setup logging
    setup_logging(parsed.log_level)
    
    # Route to appropriate command handler
    command_map = {
        "schema": SchemaCommand,
        "progress": ProgressCommand,
    }
    
    handler = command_map[parsed.command]()
    return handler.execute(parsed)


if __name__ == "__main__":
    sys.exit(main())

"""
Genome Database Health Checks - pytest Configuration and Fixtures

Provides shared test fixtures for:
- An in-memory report sink
- Per-test check contexts over empty or fake registries

Note: SQLite-backed database fixtures are in tests/integration/conftest.py
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_dir = Path(__file__).parent.parent / 'src'
if str(src_dir.absolute()) not in sys.path:
    sys.path.insert(0, str(src_dir.absolute()))

from database.audit import CheckContext, InMemoryReportSink
from database.registry import DatabaseRegistry


@pytest.fixture
def sink():
    """Report sink that keeps findings in memory without logging them."""
    return InMemoryReportSink(log_findings=False)


@pytest.fixture
def make_context(sink):
    """
    Factory for CheckContext objects sharing the test's sink.

    Usage:
        context = make_context(primary=registry, secondary=reference)
    """
    def _make(primary=None, secondary=None, check_name="TestCheck"):
        return CheckContext(
            check_name=check_name,
            primary=primary if primary is not None else DatabaseRegistry([]),
            secondary=secondary,
            sink=sink,
        )
    return _make

"""
pytest configuration and fixtures for the tabledb unit suite
"""

import pytest

from infrastructure import RecordingBackend
from tabledb.database.executor import QueryExecutor
from tabledb.services.store import TableStore


@pytest.fixture
def backend() -> RecordingBackend:
    """Fresh recording backend per test"""
    return RecordingBackend()


@pytest.fixture
def executor(backend) -> QueryExecutor:
    return QueryExecutor(backend)


@pytest.fixture
def store(executor) -> TableStore:
    return TableStore(executor)

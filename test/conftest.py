"""
Test Configuration and Fixtures

This module provides:
- Environment setup before any application module is imported
- A fresh SQLite database per test (file-backed, so BEGIN IMMEDIATE serializes writers
  across connections the way row locks do on PostgreSQL)
- Unit of work factory and in-memory notifier fixtures

Architecture:
- Unit tests (test/**/unit/): marked `unit`, never touch the database fixtures
- Integration tests (test/**/integration/): real repositories over the sqlite database
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read at import time (core_setting.py, loguru_io_config.py)
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    default_db = Path(tempfile.gettempdir()) / 'booking_engine_test.db'
    os.environ.setdefault('DATABASE_URL_OVERRIDE', f'sqlite+aiosqlite:///{default_db}')
    os.environ['NOTIFIER_BACKEND'] = 'memory'
    os.environ['ENABLE_EXPIRY_REAPER'] = 'false'


# Call immediately to set env vars before any imports
_early_setup_test_environment()

from collections.abc import AsyncGenerator  # noqa: E402
from functools import partial  # noqa: E402

import pytest  # noqa: E402

from src.platform.database.orm_db_setting import Database  # noqa: E402
from src.platform.database.unit_of_work import (  # noqa: E402
    SqlAlchemyUnitOfWork,
    UnitOfWorkFactory,
)
from src.service.booking.driven_adapter.broadcaster.in_memory_notifier_impl import (  # noqa: E402
    InMemoryNotifierImpl,
)


# =============================================================================
# Database Setup and Cleanup
# =============================================================================
@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    db = Database(url=f'sqlite+aiosqlite:///{tmp_path / "booking.db"}')
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def uow_factory(database: Database) -> UnitOfWorkFactory:
    return partial(SqlAlchemyUnitOfWork, session_factory=database.session_maker)


@pytest.fixture
def notifier() -> InMemoryNotifierImpl:
    return InMemoryNotifierImpl()

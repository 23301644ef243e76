import os
import sys
import tempfile
from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

# Settings require a database URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./clinic_booking.db")

from app.config import settings  # noqa: E402
from app.database import build_engine, get_db, normalize_database_url  # noqa: E402
from app.main import app  # noqa: E402
from app.models import metadata  # noqa: E402
from app.seed import load_sample_data  # noqa: E402

# Test database URL - MUST be different from production
# Set TEST_DATABASE_URL in .env to run against PostgreSQL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

if not TEST_DATABASE_URL:
    TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'clinic_booking_test.db')}"

# Additional safety: ensure we're not using production database
if normalize_database_url(settings.database_url) == normalize_database_url(TEST_DATABASE_URL):
    print("\n❌ CRITICAL ERROR: Test database URL is same as production database!")
    print("This would DROP all production data during tests.")
    print("Please set TEST_DATABASE_URL to a separate test database in .env")
    sys.exit(1)

# Use NullPool to avoid event loop issues between tests
test_engine = build_engine(TEST_DATABASE_URL, poolclass=NullPool)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    # Drop tables after test
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest_asyncio.fixture
async def seeded(db_session: AsyncSession) -> AsyncSession:
    """Session on a schema loaded with the sample clinics, doctors and patients."""
    await load_sample_data(db_session)
    return db_session


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    """Factory for extra sessions, each on its own connection."""
    return TestSessionLocal


@pytest_asyncio.fixture
async def client(seeded: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by the seeded session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield seeded

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Sample data ids, in insertion order
DOCTOR_ALICE = 1
DOCTOR_JOHN = 2
PATIENT_MARY = 1
PATIENT_DAVID = 2
CENTRAL_CLINIC = 1
ROOM_101 = 1
RECEPTION_USER = 2


@pytest.fixture
def sample_appointment_data() -> dict:
    """Sample appointment data for testing."""
    return {
        "patient_id": PATIENT_MARY,
        "doctor_id": DOCTOR_ALICE,
        "clinic_id": CENTRAL_CLINIC,
        "room_id": ROOM_101,
        "scheduled_start": datetime(2025, 9, 22, 9, 0).isoformat(),
        "scheduled_end": datetime(2025, 9, 22, 9, 30).isoformat(),
        "notes": "Routine checkup",
        "created_by": RECEPTION_USER,
    }

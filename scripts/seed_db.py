"""Script to load the sample clinic dataset."""

import asyncio
import sys

from sqlalchemy import func, select

from app.database import AsyncSessionLocal, engine
from app.models import clinics
from app.seed import load_sample_data


async def seed_db() -> int:
    """Load sample data unless the database already holds clinics."""
    async with AsyncSessionLocal() as session:
        existing = (await session.execute(select(func.count()).select_from(clinics))).scalar()
        if existing:
            print(f"✗ Database already has {existing} clinic(s); refusing to seed", file=sys.stderr)
            return 1

        await load_sample_data(session)

    await engine.dispose()
    print("✓ Sample data loaded successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_db()))

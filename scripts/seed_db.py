import asyncio
import sys
from pathlib import Path

# Add project root to sys.path
project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

from castbooking.api.deps import engine  # noqa: E402
from castbooking.infrastructure.db.tables import casts, courses, customers, metadata  # noqa: E402


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        print("Created all tables.")

        await conn.execute(
            customers.insert(),
            [
                {"id": "cust-1", "name": "Hanako Sato", "email": "hanako@example.com", "phone": None},
                {"id": "cust-2", "name": "Taro Suzuki", "email": "taro@example.com", "phone": None},
            ],
        )
        await conn.execute(
            casts.insert(),
            [
                {"id": "cast-1", "name": "Yui", "location": "Shibuya"},
                {"id": "cast-2", "name": "Mio", "location": None},
            ],
        )
        await conn.execute(
            courses.insert(),
            [
                {"id": "course-60", "name": "Standard 60", "duration_minutes": 60, "price": 8000},
                {"id": "course-90", "name": "Premium 90", "duration_minutes": 90, "price": 12000},
            ],
        )

        print("Seeded customers, casts and courses.")

if __name__ == "__main__":
    asyncio.run(seed())

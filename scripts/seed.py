"""Seed the database with demo users and subscription plans."""
import argparse
import asyncio
import time

from subscriptions.database import Base, async_session, engine
from subscriptions.errors import ConflictError
from subscriptions.services.database_service import DatabaseService
from subscriptions.services.plan_service import SubscriptionPlanService
from subscriptions.services.user_service import UserService

PLANS = [
    {"name": "Free", "description": "Try it out", "price_cents": 0},
    {"name": "Starter", "description": "For individuals", "price_cents": 900},
    {"name": "Pro Plan", "description": "For small teams", "price_cents": 2900},
    {"name": "Business", "description": "For growing companies", "price_cents": 9900},
    {"name": "Enterprise", "description": "Annual contract", "price_cents": 99900, "interval": "year"},
]


async def seed(num_users: int, reset: bool) -> None:
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    created_plans = created_users = 0
    async with async_session() as session:
        db = DatabaseService(session)
        plans = SubscriptionPlanService(db)
        users = UserService(db)

        for payload in PLANS:
            try:
                await plans.create(payload)
                created_plans += 1
            except ConflictError:
                print(f"  Plan {payload['name']!r} already exists, skipped")

        for i in range(num_users):
            try:
                await users.create({
                    "name": f"Demo User {i:03d}",
                    "email": f"user{i:03d}@example.com",
                    "raw_password": f"password{i:03d}",
                })
                created_users += 1
            except ConflictError:
                pass

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"Seeding complete in {elapsed:.1f}s")
    print(f"  Plans: {created_plans}")
    print(f"  Users: {created_users}")


def main():
    parser = argparse.ArgumentParser(description="Seed the subscriptions database")
    parser.add_argument("--users", type=int, default=20, help="Number of demo users")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()
    asyncio.run(seed(args.users, args.reset))


if __name__ == "__main__":
    main()

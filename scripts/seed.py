"""Seed the transactions database with demo owners and print a token for each."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.auth import create_access_token
from app.database import Base, async_session, engine
from app.models import Transaction

CATEGORIES = {
    "income": ["salary", "freelance", "dividends", "refund", "gift"],
    "expense": ["rent", "groceries", "transport", "utilities", "dining", "travel", "health"],
}


async def seed(owners: int, per_owner: int, reset: bool) -> None:
    print(f"Seeding: {owners} owners x {per_owner} transactions")
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    owner_ids = [f"demo-{i:03d}" for i in range(owners)]
    async with async_session() as session:
        for owner in owner_ids:
            for _ in range(per_owner):
                kind = "income" if random.random() < 0.3 else "expense"
                session.add(
                    Transaction(
                        user_id=owner,
                        type=kind,
                        amount=Decimal(random.randint(100, 250_000)) / 100,
                        category=random.choice(CATEGORIES[kind]),
                        description=f"Demo {kind}",
                        date=datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365)),
                    )
                )
            await session.flush()
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    for owner in owner_ids:
        print(f"  {owner}: {create_access_token(owner)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the transactions database")
    parser.add_argument("--owners", type=int, default=5, help="Number of demo owners")
    parser.add_argument("--per-owner", type=int, default=50, help="Transactions per owner")
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    asyncio.run(seed(args.owners, args.per_owner, args.reset))


if __name__ == "__main__":
    main()

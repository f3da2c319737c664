import asyncio
import os
import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from ttlive.models import Player, Team

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

DEMO_PLAYERS = [
    ("Ada Lin", "Senior"),
    ("Bo Chen", "Senior"),
    ("Cai Wen", "Senior"),
    ("Dev Patel", "Junior"),
    ("Eli Moss", "Junior"),
    ("Fay Ortiz", "Junior"),
    ("Gus Hart", "Super Senior"),
    ("Hal Reyes", "Super Senior"),
]

DEMO_TEAMS = [
    ("Smash Bros", ["Ada Lin", "Bo Chen", "Dev Patel", "Gus Hart"]),
    ("Net Ninjas", ["Cai Wen", "Eli Moss", "Fay Ortiz", "Hal Reyes"]),
]

async def main():
    async with Session() as s:
        existing = {
            p.name.lower(): p for p in (await s.execute(select(Player))).scalars().all()
        }
        for name, category in DEMO_PLAYERS:
            if name.lower() not in existing:
                p = Player(id=uuid.uuid4().hex, name=name, category=category)
                s.add(p)
                existing[name.lower()] = p
        await s.commit()

        have_teams = {t.name for t in (await s.execute(select(Team))).scalars().all()}
        for team_name, members in DEMO_TEAMS:
            if team_name in have_teams:
                continue
            s.add(
                Team(
                    id=uuid.uuid4().hex,
                    name=team_name,
                    player_ids=[existing[m.lower()].id for m in members],
                )
            )
        await s.commit()
    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())

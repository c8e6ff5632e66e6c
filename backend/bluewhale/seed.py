"""
Blue Whale Backend: Development Seed Data
===========================================

What:  Creates the two test accounts and, optionally, random sample posts.
How:   Uses the application's own models and async session factory, so it
       runs against whatever DATABASE_URL the backend is configured with.
When:  After `alembic upgrade head` on a fresh development database.

Usage:
    python -m bluewhale.seed                 # test accounts only
    python -m bluewhale.seed --content 50    # plus 50 random posts
    python -m bluewhale.seed --content 50 --seed 7

Test accounts (password "password123"):
    test@example.com    Seoul, Gangnam station   [127.0276, 37.4979]
    test2@example.com   ~11km north of it        [127.0276, 37.5979]

Generated posts are scattered over the Seoul area (lat 37.4-37.7,
lng 126.8-127.2). The first tenth of them mention "Blue Whale" in the title,
the next tenth in the body, and the next tenth carry the BlueWhale tag,
so search has something to find.
"""

import argparse
import asyncio
import logging
import random
import sys
import uuid
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select

from bluewhale.database import async_session_factory, dispose_engine
from bluewhale.models import Content, User
from bluewhale.models.user import utcnow
from bluewhale.security import hash_password

logger = logging.getLogger("bluewhale.seed")

TEST_PASSWORD = "password123"

TEST_ACCOUNTS = (
    {"email": "test@example.com", "name": "Test User", "longitude": 127.0276, "latitude": 37.4979},
    {"email": "test2@example.com", "name": "Test User 2", "longitude": 127.0276, "latitude": 37.5979},
)

SEOUL_AREA = {"min_lat": 37.4, "max_lat": 37.7, "min_lng": 126.8, "max_lng": 127.2}

SEED_TAGS = (
    "marine-life", "conservation", "ocean-pollution", "ocean-policy", "marine-science",
    "ocean-education", "ecosystem", "preservation", "research", "ocean-tech",
    "whale", "dolphin", "shark", "coral-reef", "jellyfish", "turtle", "octopus",
    "climate-change", "plastic", "sustainability", "sea", "ocean", "biodiversity",
)

SEED_CONTENT_TYPES = ("text", "article", "question", "discussion", "review", "news")

PLACES = ("Gangnam", "Mapo", "Jongno", "Yongsan", "Songpa", "Seodaemun", "Gwanak", "Nowon")
STREETS = ("Teheran-ro", "Sejong-daero", "Hangang-daero", "Olympic-ro", "Yeonhui-ro", "Dongil-ro")

WORDS = (
    "whale", "ocean", "tide", "current", "reef", "harbor", "migration", "plankton",
    "surface", "depth", "signal", "song", "pod", "coast", "island", "survey",
    "sighting", "community", "report", "season", "water", "blue", "research", "story",
)


# ── Pure helpers ──────────────────────────────────────────────────────────

def random_location(rng: random.Random) -> Tuple[float, float, str]:
    """(longitude, latitude, place name) inside the Seoul bounding box."""
    lat = rng.uniform(SEOUL_AREA["min_lat"], SEOUL_AREA["max_lat"])
    lng = rng.uniform(SEOUL_AREA["min_lng"], SEOUL_AREA["max_lng"])
    return lng, lat, f"{rng.choice(PLACES)} {rng.choice(STREETS)}"


def random_tags(rng: random.Random) -> List[str]:
    """One to five distinct tags."""
    return rng.sample(SEED_TAGS, rng.randint(1, 5))


def random_sentence(rng: random.Random, words: int) -> str:
    text = " ".join(rng.choice(WORDS) for _ in range(words))
    return text.capitalize() + "."


def random_body(rng: random.Random) -> str:
    paragraphs = [
        " ".join(random_sentence(rng, rng.randint(6, 14)) for _ in range(rng.randint(2, 5)))
        for _ in range(rng.randint(1, 5))
    ]
    return "\n\n".join(paragraphs)


def build_content(rng: random.Random, authors: Sequence[User], index: int, count: int) -> Content:
    lng, lat, place = random_location(rng)
    title = random_sentence(rng, rng.randint(3, 8))[:100]
    body = random_body(rng)
    tags = random_tags(rng)

    tenth = max(count // 10, 1)
    if index < tenth:
        title = f"Blue Whale {title}"[:200]
    elif index < 2 * tenth:
        body = f"{body} Notes from the Blue Whale Protocol community."
    elif index < 3 * tenth:
        tags.append("BlueWhale")

    created_at = utcnow() - timedelta(minutes=rng.randint(0, 60 * 24 * 365))
    return Content(
        id=uuid.uuid4(),
        title=title,
        body=body,
        content_type=rng.choice(SEED_CONTENT_TYPES),
        author_id=rng.choice(authors).id,
        longitude=lng,
        latitude=lat,
        location_name=place,
        tags=tags,
        ai_score=rng.randint(0, 99),
        views=rng.randint(0, 999),
        likes_count=0,
        comments_count=0,
        created_at=created_at,
        updated_at=created_at,
    )


# ── Database steps ────────────────────────────────────────────────────────

async def ensure_test_accounts(session) -> List[User]:
    """Create missing test accounts; existing ones are left untouched."""
    users = []
    for account in TEST_ACCOUNTS:
        user = await session.scalar(select(User).where(User.email == account["email"]))
        if user is None:
            now = utcnow()
            user = User(
                id=uuid.uuid4(),
                password_hash=hash_password(TEST_PASSWORD),
                created_at=now,
                updated_at=now,
                **account,
            )
            session.add(user)
            logger.info("Created test account %s", account["email"])
        else:
            logger.info("Test account %s already exists", account["email"])
        users.append(user)
    await session.flush()
    return users


async def seed(content_count: int, rng_seed: Optional[int] = None) -> None:
    rng = random.Random(rng_seed)
    async with async_session_factory() as session:
        async with session.begin():
            await ensure_test_accounts(session)

            if content_count > 0:
                authors = (await session.scalars(select(User))).all()
                session.add_all(
                    build_content(rng, authors, i, content_count) for i in range(content_count)
                )
                logger.info("Created %d sample posts from %d authors", content_count, len(authors))
    await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m bluewhale.seed",
        description="Create test accounts and sample content for development.",
    )
    parser.add_argument("--content", type=int, default=0, metavar="N", help="sample posts to create")
    parser.add_argument("--seed", type=int, default=None, help="random seed for reproducible data")
    args = parser.parse_args(argv)

    if args.content < 0:
        parser.error("--content must be zero or positive")

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    asyncio.run(seed(args.content, args.seed))
    return 0


if __name__ == "__main__":
    sys.exit(main())

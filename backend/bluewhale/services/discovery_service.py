"""
Blue Whale Backend: Discovery Service
=======================================

What:  The read-only feeds: newest, global top, local, personalized, search.
How:   Plain SQL for ordering and filtering, PostgreSQL full-text search for
       queries and a haversine expression with a bounding-box prefilter for
       distance (see bluewhale.geo).
Who:   Called by the /content feed and search route handlers.

Feeds:
    all           newest first
    global-top    3 * likes + 2 * comments + views, then newest
    local         within radius_km of (latitude, longitude), newest first
    personalized  followed authors (2 * limit newest) + nearby posts (limit
                  newest within 10km, not the user's own), merged in Python
    search        plainto_tsquery over title + body, ranked by ts_rank
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func, literal_column, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bluewhale.config import settings
from bluewhale.exceptions import ValidationError
from bluewhale.geo import parse_coordinate, parse_radius_km, within_radius
from bluewhale.models import Content, Follow, User
from bluewhale.pagination import build_pagination, page_offset, paginate_list
from bluewhale.schemas.content import (
    ContentFeedResponse,
    ContentResponse,
    ContentSearchItem,
    ContentSearchResponse,
)

logger = logging.getLogger(__name__)


def split_csv(value: Optional[str]) -> List[str]:
    """'a, b,,c' → ['a', 'b', 'c']"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def merge_feeds(*feeds: Iterable[Content]) -> List[Content]:
    """Union of several result lists, first occurrence wins, newest first."""
    seen: Dict[object, Content] = {}
    for feed in feeds:
        for item in feed:
            if item.id not in seen:
                seen[item.id] = item
    return sorted(seen.values(), key=lambda c: c.created_at, reverse=True)


def engagement_score():
    """global-top ranking: 3 points per like, 2 per comment, 1 per view."""
    return 3 * Content.likes_count + 2 * Content.comments_count + Content.views


def search_document():
    """
    Must stay identical to the idx_contents_search expression in the
    migration, otherwise PostgreSQL won't use the GIN index.
    """
    return func.to_tsvector(
        literal_column(f"'{settings.search_language}'::regconfig"),
        func.coalesce(Content.title, "") + " " + func.coalesce(Content.body, ""),
    )


def _feed(items: Sequence[Content], total: int, page: int, limit: int) -> ContentFeedResponse:
    return ContentFeedResponse(
        data=[ContentResponse.model_validate(c) for c in items],
        pagination=build_pagination(total, page, limit),
    )


class DiscoveryService:

    async def list_all(self, db: AsyncSession, page: int = 1, limit: int = 10) -> ContentFeedResponse:
        total = await db.scalar(select(func.count(Content.id))) or 0
        result = await db.scalars(
            select(Content)
            .options(selectinload(Content.author))
            .order_by(Content.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        return _feed(result.all(), total, page, limit)

    async def global_top(self, db: AsyncSession, page: int = 1, limit: int = 10) -> ContentFeedResponse:
        total = await db.scalar(select(func.count(Content.id))) or 0
        result = await db.scalars(
            select(Content)
            .options(selectinload(Content.author))
            .order_by(engagement_score().desc(), Content.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        return _feed(result.all(), total, page, limit)

    async def local(
        self,
        db: AsyncSession,
        longitude: Optional[str],
        latitude: Optional[str],
        radius: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ContentFeedResponse:
        """
        Raises:
            ValidationError: longitude or latitude missing or not a number
        """
        lon = parse_coordinate(longitude)
        lat = parse_coordinate(latitude)
        if lon is None or lat is None:
            raise ValidationError(
                message="Longitude and latitude are required",
                field="longitude" if lon is None else "latitude",
            )
        radius_km = parse_radius_km(radius, settings.default_radius_km)

        nearby = within_radius(Content.latitude, Content.longitude, lat, lon, radius_km)
        total = await db.scalar(select(func.count(Content.id)).where(nearby)) or 0
        result = await db.scalars(
            select(Content)
            .options(selectinload(Content.author))
            .where(nearby)
            .order_by(Content.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        logger.debug("Local feed at (%s, %s) r=%skm: %d matches", lat, lon, radius_km, total)
        return _feed(result.all(), total, page, limit)

    async def personalized(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        limit: int = 10,
    ) -> ContentFeedResponse:
        """
        Followed authors plus nearby posts, de-duplicated, newest first.

        Both halves are capped (2 * limit and limit rows), so paging past the
        merged set returns an empty page rather than older posts.
        """
        followed_ids = select(Follow.followed_id).where(Follow.follower_id == user.id)
        result = await db.scalars(
            select(Content)
            .options(selectinload(Content.author))
            .where(Content.author_id.in_(followed_ids))
            .order_by(Content.created_at.desc())
            .limit(limit * 2)
        )
        followed = result.all()

        nearby: Sequence[Content] = []
        if user.has_location:
            result = await db.scalars(
                select(Content)
                .options(selectinload(Content.author))
                .where(
                    within_radius(
                        Content.latitude,
                        Content.longitude,
                        user.latitude,
                        user.longitude,
                        settings.personalized_radius_km,
                    ),
                    Content.author_id != user.id,
                )
                .order_by(Content.created_at.desc())
                .limit(limit)
            )
            nearby = result.all()

        merged = merge_feeds(followed, nearby)
        return _feed(paginate_list(merged, page, limit), len(merged), page, limit)

    async def search(
        self,
        db: AsyncSession,
        query: Optional[str],
        tags: Optional[str] = None,
        content_type: Optional[str] = None,
        sort: Optional[str] = "relevance",
        lat: Optional[str] = None,
        lon: Optional[str] = None,
        radius: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ContentSearchResponse:
        """
        Full-text search with optional tag, type and location filters.

        Args:
            tags/content_type: comma-separated, any-of
            lat/lon:           location filter, only when both parse as numbers
            radius:            km, falls back to the default unless a positive integer
            sort:              relevance | date | aiScore | views | likes

        Raises:
            ValidationError: empty query
        """
        query = (query or "").strip()
        if not query:
            raise ValidationError(message="Search query is required", field="query")

        config = literal_column(f"'{settings.search_language}'::regconfig")
        ts_query = func.plainto_tsquery(config, query)
        document = search_document()
        score = func.ts_rank(document, ts_query)

        conditions = [document.op("@@")(ts_query)]

        tag_list = split_csv(tags)
        if tag_list:
            conditions.append(Content.tags.overlap(tag_list))

        type_list = split_csv(content_type)
        if type_list:
            conditions.append(Content.content_type.in_(type_list))

        latitude = parse_coordinate(lat)
        longitude = parse_coordinate(lon)
        if latitude is not None and longitude is not None:
            radius_km = parse_radius_km(radius, settings.default_radius_km)
            conditions.append(
                within_radius(Content.latitude, Content.longitude, latitude, longitude, radius_km)
            )

        sort_columns = {
            "relevance": score.desc(),
            "aiScore": Content.ai_score.desc(),
            "views": Content.views.desc(),
            "likes": Content.likes_count.desc(),
        }
        if sort == "date":
            order_by = [Content.created_at.desc()]
        else:
            order_by = [sort_columns.get(sort, score.desc()), Content.created_at.desc()]

        total = await db.scalar(select(func.count(Content.id)).where(*conditions)) or 0
        result = await db.execute(
            select(Content, score.label("score"))
            .options(selectinload(Content.author))
            .where(*conditions)
            .order_by(*order_by)
            .offset(page_offset(page, limit))
            .limit(limit)
        )

        items = []
        for content, rank in result.all():
            item = ContentSearchItem.model_validate(content)
            item.score = float(rank) if rank is not None else None
            items.append(item)

        logger.debug("Search %r (sort=%s): %d matches", query, sort, total)
        return ContentSearchResponse(data=items, pagination=build_pagination(total, page, limit))


# ── Singleton Instance ────────────────────────────────────────────────────
discovery_service = DiscoveryService()

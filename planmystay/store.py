"""
store.py — Data access facade for PlanMyStay.

Provides a consistent, high-level API for persisting and retrieving domain objects.
All routes use these functions — no route touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM-only queries
  - flush() only; the get_db() dependency owns commit/rollback
  - Logs ids and usernames only — never passwords or hashes
"""
import logging
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from planmystay.models.journey import JourneyStageORM
from planmystay.models.listing import ListingORM
from planmystay.models.review import ReviewORM
from planmystay.models.user import UserORM
from planmystay.schemas import ListingForm, ListingUpdateForm, ReviewForm, ReviewUpdateForm

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# User operations
# ---------------------------------------------------------------------------

async def create_user(
    db: AsyncSession,
    username: str,
    email: str,
    password_hash: str,
) -> UserORM:
    orm = UserORM(username=username, email=email.lower(), password_hash=password_hash)
    db.add(orm)
    await db.flush()
    logger.info("Created user user_id=%s username=%s", orm.id, username)
    return orm


async def get_user(db: AsyncSession, user_id: str) -> Optional[UserORM]:
    result = await db.execute(select(UserORM).where(UserORM.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[UserORM]:
    result = await db.execute(select(UserORM).where(UserORM.username == username))
    return result.scalar_one_or_none()


async def user_exists(db: AsyncSession, username: str, email: str) -> bool:
    """True if either the username or the email is already registered."""
    result = await db.execute(
        select(func.count())
        .select_from(UserORM)
        .where(or_(UserORM.username == username, UserORM.email == email.lower()))
    )
    return result.scalar_one() > 0


# ---------------------------------------------------------------------------
# Listing operations
# ---------------------------------------------------------------------------

async def list_listings(db: AsyncSession, query: Optional[str] = None) -> list[ListingORM]:
    """
    Return listings newest first.
    query matches title, location or country (case-insensitive substring).
    """
    stmt = select(ListingORM)
    if query:
        pattern = f"%{query.strip()}%"
        stmt = stmt.where(
            or_(
                ListingORM.title.ilike(pattern),
                ListingORM.location.ilike(pattern),
                ListingORM.country.ilike(pattern),
            )
        )
    result = await db.execute(stmt.order_by(ListingORM.created_at.desc()))
    return list(result.scalars().all())


async def get_listing(db: AsyncSession, listing_id: str) -> Optional[ListingORM]:
    result = await db.execute(select(ListingORM).where(ListingORM.id == listing_id))
    return result.scalar_one_or_none()


async def create_listing(db: AsyncSession, form: ListingForm, owner_id: str) -> ListingORM:
    orm = ListingORM(owner_id=owner_id, **form.model_dump())
    db.add(orm)
    await db.flush()
    logger.info("Created listing listing_id=%s owner_id=%s", orm.id, owner_id)
    return orm


async def update_listing(db: AsyncSession, listing: ListingORM, form: ListingUpdateForm) -> ListingORM:
    """Apply only the fields the caller actually supplied."""
    for field, value in form.model_dump(exclude_none=True).items():
        setattr(listing, field, value)
    await db.flush()
    logger.info("Updated listing listing_id=%s", listing.id)
    return listing


async def delete_listing(db: AsyncSession, listing: ListingORM) -> None:
    """Delete a listing together with all of its reviews."""
    await db.execute(delete(ReviewORM).where(ReviewORM.listing_id == listing.id))
    await db.delete(listing)
    await db.flush()
    logger.info("Deleted listing listing_id=%s", listing.id)


# ---------------------------------------------------------------------------
# Review operations
# ---------------------------------------------------------------------------

async def list_reviews(db: AsyncSession, listing_id: str) -> list[dict]:
    """
    Reviews for a listing, newest first, joined with the author's username.
    """
    result = await db.execute(
        select(ReviewORM, UserORM.username)
        .join(UserORM, UserORM.id == ReviewORM.author_id)
        .where(ReviewORM.listing_id == listing_id)
        .order_by(ReviewORM.created_at.desc())
    )
    return [
        {
            "id": review.id,
            "rating": review.rating,
            "comment": review.comment,
            "author_id": review.author_id,
            "author": username,
            "created_at": review.created_at,
        }
        for review, username in result.all()
    ]


async def get_review(db: AsyncSession, listing_id: str, review_id: str) -> Optional[ReviewORM]:
    result = await db.execute(
        select(ReviewORM).where(
            ReviewORM.id == review_id,
            ReviewORM.listing_id == listing_id,
        )
    )
    return result.scalar_one_or_none()


async def create_review(
    db: AsyncSession,
    listing_id: str,
    author_id: str,
    form: ReviewForm,
) -> ReviewORM:
    orm = ReviewORM(listing_id=listing_id, author_id=author_id, **form.model_dump())
    db.add(orm)
    await db.flush()
    logger.info("Created review review_id=%s listing_id=%s", orm.id, listing_id)
    return orm


async def update_review(db: AsyncSession, review: ReviewORM, form: ReviewUpdateForm) -> ReviewORM:
    for field, value in form.model_dump(exclude_none=True).items():
        setattr(review, field, value)
    await db.flush()
    logger.info("Updated review review_id=%s", review.id)
    return review


async def delete_review(db: AsyncSession, review: ReviewORM) -> None:
    await db.delete(review)
    await db.flush()
    logger.info("Deleted review review_id=%s", review.id)


# ---------------------------------------------------------------------------
# Journey operations
# ---------------------------------------------------------------------------

async def list_journey_stages(db: AsyncSession) -> list[JourneyStageORM]:
    result = await db.execute(select(JourneyStageORM).order_by(JourneyStageORM.position.asc()))
    return list(result.scalars().all())


async def get_journey_stage(db: AsyncSession, slug: str) -> Optional[JourneyStageORM]:
    result = await db.execute(select(JourneyStageORM).where(JourneyStageORM.slug == slug))
    return result.scalar_one_or_none()


async def replace_journey_stages(db: AsyncSession, stages: list[dict]) -> int:
    """Drop every stored stage and insert the given ones. Returns the count."""
    await db.execute(delete(JourneyStageORM))
    db.add_all(JourneyStageORM(**stage) for stage in stages)
    await db.flush()
    logger.info("Replaced journey stages count=%d", len(stages))
    return len(stages)


# ---------------------------------------------------------------------------
# Insights — aggregate queries
# ---------------------------------------------------------------------------

async def get_listing_prices(
    db: AsyncSession,
    country: Optional[str] = None,
    location: Optional[str] = None,
) -> list[int]:
    """Nightly prices of listings, optionally filtered by country and/or location."""
    stmt = select(ListingORM.price)
    if country:
        stmt = stmt.where(func.lower(ListingORM.country) == country.strip().lower())
    if location:
        stmt = stmt.where(func.lower(ListingORM.location) == location.strip().lower())
    result = await db.execute(stmt)
    return [row[0] for row in result.all()]


async def get_insights_summary(db: AsyncSession, top_n: int = 5) -> dict:
    """
    Site-wide figures for /api/insights/summary.

    Computed metrics:
      - listing_count, review_count, user_count
      - average_price (rounded, None if no listings), average_rating
      - top_countries: countries with the most listings, with their average price
    """
    listing_count, average_price = (
        await db.execute(select(func.count(ListingORM.id), func.avg(ListingORM.price)))
    ).one()
    review_count, average_rating = (
        await db.execute(select(func.count(ReviewORM.id), func.avg(ReviewORM.rating)))
    ).one()
    user_count = (await db.execute(select(func.count(UserORM.id)))).scalar_one()

    rows = (
        await db.execute(
            select(
                ListingORM.country,
                func.count(ListingORM.id).label("listings"),
                func.avg(ListingORM.price).label("average_price"),
            )
            .group_by(ListingORM.country)
            .order_by(func.count(ListingORM.id).desc(), ListingORM.country.asc())
            .limit(top_n)
        )
    ).all()

    return {
        "listing_count": listing_count,
        "review_count": review_count,
        "user_count": user_count,
        "average_price": round(float(average_price)) if average_price is not None else None,
        "average_rating": round(float(average_rating), 2) if average_rating is not None else None,
        "top_countries": [
            {
                "country": country,
                "listings": listings,
                "average_price": round(float(avg_price)),
            }
            for country, listings, avg_price in rows
        ],
    }


async def get_owner_insights(db: AsyncSession, owner_id: str) -> dict:
    """Per-owner figures for /api/insights/mine."""
    listing_count, average_price = (
        await db.execute(
            select(func.count(ListingORM.id), func.avg(ListingORM.price)).where(
                ListingORM.owner_id == owner_id
            )
        )
    ).one()
    review_count, average_rating = (
        await db.execute(
            select(func.count(ReviewORM.id), func.avg(ReviewORM.rating))
            .join(ListingORM, ListingORM.id == ReviewORM.listing_id)
            .where(ListingORM.owner_id == owner_id)
        )
    ).one()
    return {
        "listing_count": listing_count,
        "average_price": round(float(average_price)) if average_price is not None else None,
        "reviews_received": review_count,
        "average_rating": round(float(average_rating), 2) if average_rating is not None else None,
    }

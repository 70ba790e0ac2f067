# backend/tours_api/crud/tours.py
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy import Select, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tours_api.core.errors import NotFound
from tours_api.models.account import Account
from tours_api.models.review import Review
from tours_api.models.supplier import Supplier
from tours_api.models.tour import Tour
from tours_api.schemas.tours import TourDetail, TourReview, TourSummary, TourSupplier

logger = structlog.get_logger()


def eligible_tour_clause():
    """
    Tours visible to the public: active AND approved, offered by an approved
    supplier. Every read goes through this, including lookup by id.
    Requires Supplier to be joined.
    """
    return and_(
        Tour.is_active.is_(True),
        Tour.is_approved.is_(True),
        Supplier.is_approved.is_(True),
    )


def _rating_stats_subquery():
    # AVG over an outer join; tours without reviews get NULL -> 0 ("no rating yet").
    return (
        select(
            Review.tour_id.label("tour_id"),
            func.avg(Review.rating).label("average_rating"),
            func.count(Review.id).label("review_count"),
        )
        .group_by(Review.tour_id)
        .subquery("rating_stats")
    )


def _summary_select() -> Select:
    stats = _rating_stats_subquery()
    return (
        select(
            Tour,
            Supplier.business_name,
            Supplier.description,
            Supplier.phone_number,
            stats.c.average_rating,
            stats.c.review_count,
        )
        .join(Supplier, Supplier.id == Tour.supplier_id)
        .outerjoin(stats, stats.c.tour_id == Tour.id)
        .where(eligible_tour_clause())
    )


def _to_summary(row: Any) -> TourSummary:
    tour: Tour = row[0]
    avg = row.average_rating
    return TourSummary(
        id=tour.id,
        title=tour.title,
        description=tour.description,
        price=tour.price,
        location=tour.location,
        duration_minutes=tour.duration_minutes,
        image_url=tour.image_url,
        capacity=tour.capacity,
        supplier_name=row.business_name,
        average_rating=float(avg) if avg is not None else 0.0,
        review_count=int(row.review_count or 0),
        created_at=tour.created_at,
    )


async def list_tours(db: AsyncSession) -> list[TourSummary]:
    """
    All eligible tours, newest first. No pagination.
    """
    stmt = _summary_select().order_by(Tour.created_at.desc(), Tour.id)
    res = await db.execute(stmt)
    return [_to_summary(row) for row in res.all()]


async def get_tour(db: AsyncSession, tour_id: uuid.UUID) -> TourDetail:
    """
    Detail view of one eligible tour with its reviews (newest first).
    Ineligible tours raise NotFound exactly like missing ones.
    """
    res = await db.execute(_summary_select().where(Tour.id == tour_id))
    row = res.first()
    if row is None:
        raise NotFound()

    reviews_stmt = (
        select(Review, Account.first_name, Account.last_name)
        .join(Account, Account.id == Review.customer_id)
        .where(Review.tour_id == tour_id)
        .order_by(Review.created_at.desc(), Review.id)
    )
    reviews = [
        TourReview(
            id=review.id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
            customer_name=Account.redacted_name(first_name, last_name),
        )
        for review, first_name, last_name in (await db.execute(reviews_stmt)).all()
    ]

    summary = _to_summary(row)
    return TourDetail(
        **summary.model_dump(),
        supplier=TourSupplier(
            business_name=row.business_name,
            description=row.description,
            phone_number=row.phone_number,
        ),
        reviews=reviews,
    )


async def search_tours(
    db: AsyncSession,
    *,
    location: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    min_rating: Optional[float] = None,
) -> list[TourSummary]:
    """
    Two-phase search.

    Phase 1 (storage): eligibility, location (case-insensitive substring) and
    inclusive price bounds, with the per-tour rating aggregate computed in the
    same query.
    Phase 2 (memory): the average rating is not a column, so min_rating is
    applied to the fetched rows, then results are sorted by average rating
    descending (stable, ties keep newest-first order).
    """
    stmt = _summary_select()

    location = (location or "").strip()
    if location:
        stmt = stmt.where(Tour.location.icontains(location, autoescape=True))
    if min_price is not None:
        stmt = stmt.where(Tour.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Tour.price <= max_price)

    stmt = stmt.order_by(Tour.created_at.desc(), Tour.id)
    res = await db.execute(stmt)
    candidates = [_to_summary(row) for row in res.all()]

    if min_rating is not None:
        results = [t for t in candidates if t.average_rating >= min_rating]
    else:
        results = candidates

    logger.debug(
        "tour_search",
        location=location or None,
        min_price=str(min_price) if min_price is not None else None,
        max_price=str(max_price) if max_price is not None else None,
        min_rating=min_rating,
        storage_matches=len(candidates),
        returned=len(results),
    )

    return sorted(results, key=lambda t: t.average_rating, reverse=True)

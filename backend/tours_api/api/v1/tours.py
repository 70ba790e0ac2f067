# backend/tours_api/api/v1/tours.py
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tours_api.core.errors import NotFound
from tours_api.crud.tours import get_tour, list_tours, search_tours
from tours_api.db.session import get_db
from tours_api.schemas.tours import TourDetail, TourSummary

router = APIRouter(prefix="/tours", tags=["tours"])


@router.get("", response_model=List[TourSummary])
async def list_all_tours(db: AsyncSession = Depends(get_db)):
    return await list_tours(db)


# Declared before /{tour_id} so "search" is not parsed as an id.
@router.get("/search", response_model=List[TourSummary])
async def search(
    location: Optional[str] = Query(default=None, max_length=200),
    min_price: Optional[Decimal] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(default=None, alias="maxPrice", ge=0),
    min_rating: Optional[float] = Query(default=None, alias="minRating", ge=0, le=5),
    db: AsyncSession = Depends(get_db),
):
    """
    All filters optional and ANDed. location is a case-insensitive substring match;
    price bounds and minRating are inclusive. Sorted by average rating, highest first.
    """
    return await search_tours(
        db,
        location=location,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
    )


@router.get("/{tour_id}", response_model=TourDetail)
async def get_tour_detail(tour_id: str, db: AsyncSession = Depends(get_db)):
    # A malformed id cannot name any tour, so it is NotFound rather than 422.
    try:
        parsed_id = uuid.UUID(tour_id)
    except ValueError:
        raise NotFound()
    return await get_tour(db, parsed_id)

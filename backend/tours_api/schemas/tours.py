# backend/tours_api/schemas/tours.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class TourSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    price: Decimal
    location: str
    duration_minutes: int
    image_url: str
    capacity: int

    supplier_name: str

    # derived on every read; 0 means "no rating yet"
    average_rating: float
    review_count: int

    created_at: datetime


class TourSupplier(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    business_name: str
    description: str
    phone_number: str


class TourReview(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rating: int
    comment: str
    created_at: datetime
    customer_name: str


class TourDetail(TourSummary):
    supplier: TourSupplier
    reviews: list[TourReview]

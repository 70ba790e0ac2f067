# tests/test_tours.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from tours_api.db.session import get_db
from tours_api.models.account import Account
from tours_api.models.review import Review
from tours_api.models.supplier import Supplier
from tours_api.models.tour import Tour

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


async def create_account(db, first_name: str = "Casey", last_name: str = "Rivera") -> Account:
    account = Account(
        email=f"{uuid.uuid4().hex[:10]}@example.com",
        password_hash="not-used-here",
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    db.add(account)
    await db.flush()
    return account


async def create_supplier(db, business_name: str = "Sonoran Adventures") -> Supplier:
    owner = await create_account(db, "Sam", "Owner")
    supplier = Supplier(
        account_id=owner.id,
        business_name=business_name,
        description="Family-run outfitter",
        phone_number="+14805550123",
        is_approved=True,
    )
    db.add(supplier)
    await db.flush()
    return supplier


async def create_tour(
    db,
    supplier: Supplier,
    title: str,
    *,
    location: str = "Scottsdale",
    price: str = "50.00",
    minutes_after_base: int = 0,
    is_active: bool = True,
    is_approved: bool = True,
) -> Tour:
    tour = Tour(
        supplier_id=supplier.id,
        title=title,
        description=f"{title} description",
        price=Decimal(price),
        capacity=12,
        location=location,
        duration_minutes=120,
        image_url=f"https://img.example.com/{uuid.uuid4().hex}.jpg",
        is_active=is_active,
        is_approved=is_approved,
        created_at=BASE_TIME + timedelta(minutes=minutes_after_base),
    )
    db.add(tour)
    await db.flush()
    return tour


async def add_reviews(db, tour: Tour, ratings: list[int], reviewer: Account | None = None) -> None:
    reviewer = reviewer or await create_account(db)
    for i, rating in enumerate(ratings):
        db.add(
            Review(
                tour_id=tour.id,
                customer_id=reviewer.id,
                rating=rating,
                comment=f"rated {rating}",
                created_at=BASE_TIME + timedelta(hours=i),
            )
        )
    await db.flush()


async def seed_scottsdale_scenario(db) -> tuple[Tour, Tour]:
    supplier = await create_supplier(db)
    jeep = await create_tour(db, supplier, "Desert Jeep Tour", location="Scottsdale", price="80.00")
    pool = await create_tour(
        db, supplier, "Pool Party", location="Tempe", price="40.00", minutes_after_base=10
    )
    await add_reviews(db, jeep, [5, 3])
    await db.commit()
    return jeep, pool


def titles(body: list[dict]) -> list[str]:
    return [t["title"] for t in body]


# ==========================================================
# ListTours
# ==========================================================
@pytest.mark.asyncio
async def test_list_tours_newest_first_with_summary_fields(client, db):
    jeep, pool = await seed_scottsdale_scenario(db)

    r = await client.get("/api/v1/tours")

    assert r.status_code == 200
    body = r.json()
    assert titles(body) == ["Pool Party", "Desert Jeep Tour"]

    jeep_row = body[1]
    assert jeep_row["id"] == str(jeep.id)
    assert Decimal(str(jeep_row["price"])) == Decimal("80.00")
    assert jeep_row["location"] == "Scottsdale"
    assert jeep_row["duration_minutes"] == 120
    assert jeep_row["capacity"] == 12
    assert jeep_row["supplier_name"] == "Sonoran Adventures"
    assert jeep_row["average_rating"] == 4.0
    assert jeep_row["review_count"] == 2
    assert "created_at" in jeep_row

    assert body[0]["average_rating"] == 0
    assert body[0]["review_count"] == 0


@pytest.mark.asyncio
async def test_average_rating_is_mean_of_reviews(client, db):
    supplier = await create_supplier(db)
    tour = await create_tour(db, supplier, "Sunset Hike")
    await add_reviews(db, tour, [5, 3, 4])
    await db.commit()

    r = await client.get("/api/v1/tours")

    assert r.json()[0]["average_rating"] == 4.0
    assert r.json()[0]["review_count"] == 3


@pytest.mark.asyncio
async def test_list_tours_excludes_inactive_and_unapproved(client, db):
    supplier = await create_supplier(db)
    await create_tour(db, supplier, "Visible")
    await create_tour(db, supplier, "Inactive", is_active=False)
    await create_tour(db, supplier, "Unapproved", is_approved=False)
    await db.commit()

    r = await client.get("/api/v1/tours")

    assert titles(r.json()) == ["Visible"]


@pytest.mark.asyncio
async def test_unapproved_supplier_tours_are_hidden(client, db):
    supplier = await create_supplier(db)
    supplier.is_approved = False
    tour = await create_tour(db, supplier, "Pending Supplier Tour")
    await db.commit()

    assert (await client.get("/api/v1/tours")).json() == []
    assert (await client.get("/api/v1/tours/search")).json() == []
    assert (await client.get(f"/api/v1/tours/{tour.id}")).status_code == 404


# ==========================================================
# GetTour
# ==========================================================
@pytest.mark.asyncio
async def test_get_tour_detail_with_redacted_reviewer_names(client, db):
    supplier = await create_supplier(db, business_name="Camelback Guides")
    tour = await create_tour(db, supplier, "Camelback Summit")
    jane = await create_account(db, "Jane", "Doe")
    await add_reviews(db, tour, [5, 4], reviewer=jane)
    await db.commit()

    r = await client.get(f"/api/v1/tours/{tour.id}")

    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Camelback Summit"
    assert body["average_rating"] == 4.5
    assert body["review_count"] == 2
    assert body["supplier"] == {
        "business_name": "Camelback Guides",
        "description": "Family-run outfitter",
        "phone_number": "+14805550123",
    }

    assert [rv["rating"] for rv in body["reviews"]] == [4, 5]  # newest first
    assert {rv["customer_name"] for rv in body["reviews"]} == {"Jane D."}
    assert body["reviews"][0]["comment"] == "rated 4"


@pytest.mark.asyncio
async def test_get_tour_unknown_id_is_not_found(client):
    r = await client.get(f"/api/v1/tours/{uuid.uuid4()}")

    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "NotFound"


@pytest.mark.asyncio
@pytest.mark.parametrize("tour_id", ["5", "not-a-uuid", "1234-5678"])
async def test_get_tour_malformed_id_is_not_found(client, tour_id):
    r = await client.get(f"/api/v1/tours/{tour_id}")

    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "NotFound"


@pytest.mark.asyncio
@pytest.mark.parametrize("flag", ["is_active", "is_approved"])
async def test_toggling_flag_hides_tour_everywhere(client, db, flag):
    jeep, _pool = await seed_scottsdale_scenario(db)

    missing = await client.get(f"/api/v1/tours/{uuid.uuid4()}")
    assert (await client.get(f"/api/v1/tours/{jeep.id}")).status_code == 200

    setattr(jeep, flag, False)
    await db.commit()

    detail = await client.get(f"/api/v1/tours/{jeep.id}")
    listed = await client.get("/api/v1/tours")
    searched = await client.get("/api/v1/tours/search", params={"location": "Scottsdale"})

    # indistinguishable from a tour that never existed
    assert detail.status_code == 404
    assert detail.json() == missing.json()
    assert "Desert Jeep Tour" not in titles(listed.json())
    assert searched.json() == []


# ==========================================================
# SearchTours
# ==========================================================
@pytest.mark.asyncio
async def test_search_by_location(client, db):
    await seed_scottsdale_scenario(db)

    r = await client.get("/api/v1/tours/search", params={"location": "Scottsdale"})

    assert r.status_code == 200
    body = r.json()
    assert titles(body) == ["Desert Jeep Tour"]
    assert body[0]["average_rating"] == 4.0


@pytest.mark.asyncio
async def test_search_location_is_case_insensitive_substring(client, db):
    await seed_scottsdale_scenario(db)

    r = await client.get("/api/v1/tours/search", params={"location": "ttsd"})
    assert titles(r.json()) == ["Desert Jeep Tour"]

    r = await client.get("/api/v1/tours/search", params={"location": "TEMPE"})
    assert titles(r.json()) == ["Pool Party"]


@pytest.mark.asyncio
async def test_search_location_treats_like_wildcards_literally(client, db):
    await seed_scottsdale_scenario(db)

    r = await client.get("/api/v1/tours/search", params={"location": "%"})

    assert r.json() == []


@pytest.mark.asyncio
async def test_search_min_rating_excludes_unrated_tours(client, db):
    await seed_scottsdale_scenario(db)

    r = await client.get("/api/v1/tours/search", params={"minRating": 1})

    assert titles(r.json()) == ["Desert Jeep Tour"]


@pytest.mark.asyncio
async def test_search_price_bounds_are_inclusive(client, db):
    await seed_scottsdale_scenario(db)

    r = await client.get("/api/v1/tours/search", params={"minPrice": "40", "maxPrice": "80"})
    assert sorted(titles(r.json())) == ["Desert Jeep Tour", "Pool Party"]

    r = await client.get("/api/v1/tours/search", params={"minPrice": "40.01"})
    assert titles(r.json()) == ["Desert Jeep Tour"]

    r = await client.get("/api/v1/tours/search", params={"maxPrice": "79.99"})
    assert titles(r.json()) == ["Pool Party"]

    r = await client.get("/api/v1/tours/search", params={"minPrice": "90", "maxPrice": "10"})
    assert r.json() == []


@pytest.mark.asyncio
async def test_search_min_rating_threshold_and_sort(client, db):
    supplier = await create_supplier(db)
    t35 = await create_tour(db, supplier, "Three Point Five", minutes_after_base=1)
    t40a = await create_tour(db, supplier, "Four A", minutes_after_base=2)
    t40b = await create_tour(db, supplier, "Four B", minutes_after_base=3)
    t20 = await create_tour(db, supplier, "Two", minutes_after_base=4)
    await add_reviews(db, t35, [3, 4])
    await add_reviews(db, t40a, [4])
    await add_reviews(db, t40b, [5, 3])
    await add_reviews(db, t20, [2])
    await db.commit()

    r = await client.get("/api/v1/tours/search", params={"minRating": 4})

    body = r.json()
    assert sorted(titles(body)) == ["Four A", "Four B"]
    assert all(t["average_rating"] == 4.0 for t in body)


@pytest.mark.asyncio
async def test_search_without_filters_sorts_by_rating_descending(client, db):
    supplier = await create_supplier(db)
    low = await create_tour(db, supplier, "Low", minutes_after_base=3)
    high = await create_tour(db, supplier, "High", minutes_after_base=1)
    await create_tour(db, supplier, "Unrated", minutes_after_base=2)
    await add_reviews(db, low, [2, 3])
    await add_reviews(db, high, [5])
    await db.commit()

    r = await client.get("/api/v1/tours/search")

    assert titles(r.json()) == ["High", "Low", "Unrated"]


@pytest.mark.asyncio
async def test_search_combines_filters(client, db):
    supplier = await create_supplier(db)
    cheap_good = await create_tour(db, supplier, "Cheap Good", location="Old Town Scottsdale", price="30.00")
    pricey_good = await create_tour(db, supplier, "Pricey Good", location="North Scottsdale", price="300.00")
    cheap_bad = await create_tour(db, supplier, "Cheap Bad", location="Scottsdale", price="25.00")
    await add_reviews(db, cheap_good, [5])
    await add_reviews(db, pricey_good, [5])
    await add_reviews(db, cheap_bad, [1])
    await db.commit()

    r = await client.get(
        "/api/v1/tours/search",
        params={"location": "scottsdale", "maxPrice": "100", "minRating": 3},
    )

    assert titles(r.json()) == ["Cheap Good"]


@pytest.mark.asyncio
async def test_search_rejects_out_of_range_rating(client):
    r = await client.get("/api/v1/tours/search", params={"minRating": 6})
    assert r.status_code == 422


# ==========================================================
# Storage failures
# ==========================================================
class _UnavailableSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


@pytest.mark.asyncio
async def test_storage_failure_surfaces_as_storage_unavailable(client, app):
    async def _dead_db():
        yield _UnavailableSession()

    app.dependency_overrides[get_db] = _dead_db

    r = await client.get("/api/v1/tours")

    assert r.status_code == 503
    body = r.json()
    assert body["detail"]["code"] == "StorageUnavailable"
    assert "connection refused" not in r.text

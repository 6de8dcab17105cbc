"""
test_pricing.py — POST /api/predict-price and the pricing rules behind it.
"""
import pytest

from planmystay.pricing import BASE_NIGHTLY_RATE, _confidence, _multiplier
from planmystay.schemas import PricePredictionRequest
from planmystay.tests.helpers import create_listing, register


def test_multiplier_scales_with_guests_bedrooms_and_amenities():
    assert _multiplier(PricePredictionRequest()) == pytest.approx(1.0)
    assert _multiplier(PricePredictionRequest(guests=4, bedrooms=3)) == pytest.approx(1.0 + 0.16 + 0.30)
    # duplicate / blank amenities don't count twice
    request = PricePredictionRequest(amenities=["Wifi", "wifi ", "", "Pool"])
    assert _multiplier(request) == pytest.approx(1.04)


def test_amenity_uplift_is_capped():
    request = PricePredictionRequest(amenities=[f"a{i}" for i in range(30)])
    assert _multiplier(request) == pytest.approx(1.20)


@pytest.mark.parametrize(("count", "expected"), [(0, "low"), (2, "low"), (3, "medium"), (9, "medium"), (10, "high")])
def test_confidence_thresholds(count, expected):
    assert _confidence(count) == expected


@pytest.mark.asyncio
async def test_prediction_falls_back_to_base_rate(client):
    response = await client.post("/api/predict-price", json={"location": "Nowhere"})
    assert response.status_code == 200
    body = response.json()
    assert body["predicted_price"] == BASE_NIGHTLY_RATE
    assert body["comparables"] == 0
    assert body["confidence"] == "low"
    assert body["basis"] == "base rate"
    assert body["low"] < body["predicted_price"] < body["high"]


@pytest.mark.asyncio
async def test_prediction_uses_location_median(client):
    await register(client, "alice")
    for price in (1000, 2000, 6000):
        await create_listing(client, price=price, location="Goa", country="India")
    await create_listing(client, price=9000, location="Delhi", country="India")

    body = (await client.post("/api/predict-price", json={"location": "Goa", "country": "India"})).json()
    assert body["predicted_price"] == 2000
    assert body["comparables"] == 3
    assert body["confidence"] == "medium"
    assert body["basis"] == "listings in Goa"
    assert (body["low"], body["high"]) == (1700, 2300)


@pytest.mark.asyncio
async def test_prediction_widens_to_country(client):
    await register(client, "alice")
    await create_listing(client, price=4000, location="Delhi", country="India")

    body = (await client.post("/api/predict-price", json={"location": "Jaipur", "country": "India"})).json()
    assert body["predicted_price"] == 4000
    assert body["basis"] == "listings in India"


@pytest.mark.asyncio
async def test_prediction_rejects_unknown_fields(client):
    response = await client.post("/api/predict-price", json={"guests": 0, "pets": True})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {detail["field"] for detail in error["details"]}
    assert {"guests", "pets"} <= fields

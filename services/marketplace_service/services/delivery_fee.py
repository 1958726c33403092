"""Delivery fee quotes from distance tiers.

Distance comes from the Google Distance Matrix API when a key and both
coordinates are available; otherwise it is estimated from city/location.
"""

from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.marketplace_service.schemas import DeliveryLocation

logger = get_logger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
DEFAULT_FEE = 300

# (max km, fee in ETB); anything beyond the last tier pays FAR_FEE
FEE_TIERS = ((5, 200), (10, 300))
FAR_FEE = 400


def delivery_fee_for_distance(distance_km: float) -> int:
    for max_km, fee in FEE_TIERS:
        if distance_km <= max_km:
            return fee
    return FAR_FEE


def _similar(a: str, b: str) -> bool:
    a, b = a.lower().strip(), b.lower().strip()
    return bool(a and b) and (a == b or a in b or b in a)


def estimate_distance(origin: DeliveryLocation, destination: DeliveryLocation) -> float:
    """Same location ~3 km, same city ~7 km, different cities ~15 km."""
    origin_city = (origin.city or "").lower().strip()
    destination_city = (destination.city or "").lower().strip()

    if origin_city and origin_city == destination_city:
        if _similar(origin.location or "", destination.location or ""):
            return 3.0
        return 7.0
    return 15.0


async def _matrix_distance(
    origin: DeliveryLocation, destination: DeliveryLocation, api_key: str
) -> Optional[float]:
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                DISTANCE_MATRIX_URL,
                params={
                    "origins": f"{origin.lat},{origin.lng}",
                    "destinations": f"{destination.lat},{destination.lng}",
                    "units": "metric",
                    "key": api_key,
                },
            )
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as e:
        logger.warning(f"Distance Matrix request failed: {e}")
        return None

    try:
        element = data["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError):
        return None
    if data.get("status") != "OK" or element.get("status") != "OK":
        return None
    return element["distance"]["value"] / 1000


async def calculate_distance(
    origin: DeliveryLocation, destination: DeliveryLocation
) -> float:
    api_key = get_settings().GOOGLE_MAPS_API_KEY
    has_coordinates = None not in (origin.lat, origin.lng, destination.lat, destination.lng)
    if api_key and has_coordinates:
        distance = await _matrix_distance(origin, destination, api_key)
        if distance is not None:
            return distance
    return estimate_distance(origin, destination)


async def quote_delivery_fee(
    origin: Optional[DeliveryLocation], destination: Optional[DeliveryLocation]
) -> dict:
    if origin is None or destination is None:
        return {"distance_km": None, "delivery_fee": DEFAULT_FEE}

    distance = await calculate_distance(origin, destination)
    return {
        "distance_km": round(distance, 2),
        "delivery_fee": delivery_fee_for_distance(distance),
    }

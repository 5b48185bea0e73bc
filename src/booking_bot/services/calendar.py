import logging
from typing import Any, Callable, TypeVar

from booking_bot.dto import Booking, ProviderService, Service
from booking_bot.services.api import ApiClient
from booking_bot.services.errors import ApiError
from booking_bot.utils.time import parse_iso

logger = logging.getLogger(__name__)

SERVICES_PATH = "/api/services"
PROVIDER_SERVICES_PATH = "/api/provider-services"
BOOKINGS_PATH = "/api/bookings"
MY_BOOKINGS_PATH = "/bookings/me"

T = TypeVar("T")


def _to_service(data: dict) -> Service:
    price = data.get("price")
    return Service(
        id=str(data["id"]),
        name=data.get("name") or "",
        description=data.get("description") or "",
        price=float(price) if price is not None else None,
    )


def _to_provider_service(data: dict) -> ProviderService:
    nested = data.get("service")
    if isinstance(nested, dict):
        service = _to_service(nested)
    else:
        service = Service(
            id=str(data["service_id"]),
            name=data.get("service_name") or data.get("name") or "",
            description=data.get("service_description") or data.get("description") or "",
            price=float(data["price"]) if data.get("price") is not None else None,
        )
    return ProviderService(id=str(data["id"]), provider_id=str(data.get("provider_id") or ""), service=service)


def _to_booking(data: dict) -> Booking:
    try:
        scheduled = parse_iso(data.get("scheduled_time"))
    except (TypeError, ValueError):
        logger.warning("calendar: unreadable scheduled_time on booking id=%s", data.get("id"))
        scheduled = None
    return Booking(
        id=str(data["id"]),
        service_name=data.get("service_name") or "",
        provider_name=data.get("provider_name") or "",
        client_name=data.get("client_name") or "",
        scheduled_time=scheduled,
        status=data.get("status") or "",
    )


def _collection(resp: Any, field: str, convert: Callable[[dict], T]) -> list[T]:
    if not isinstance(resp, dict):
        raise ApiError(f"Malformed response: expected an object with '{field}'")
    items = resp.get(field) or []
    try:
        return [convert(item) for item in items]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ApiError(f"Malformed item in '{field}'") from exc


async def list_services(api: ApiClient) -> list[Service]:
    resp = await api.request(SERVICES_PATH)
    return _collection(resp, "services", _to_service)


async def list_provider_services(api: ApiClient, *, provider_id: str) -> list[ProviderService]:
    resp = await api.request(PROVIDER_SERVICES_PATH, params={"provider_id": provider_id})
    return _collection(resp, "provider_services", _to_provider_service)


async def add_provider_service(api: ApiClient, *, provider_id: str, service_id: str) -> Any:
    return await api.request(
        PROVIDER_SERVICES_PATH,
        method="POST",
        json={"provider_id": provider_id, "service_id": service_id},
    )


async def remove_provider_service(api: ApiClient, *, provider_service_id: str) -> Any:
    return await api.request(f"{PROVIDER_SERVICES_PATH}/{provider_service_id}", method="DELETE")


async def create_booking(api: ApiClient, *, service_id: str, scheduled_time: str) -> Any:
    return await api.request(
        BOOKINGS_PATH,
        method="POST",
        json={"service_id": service_id, "scheduled_time": scheduled_time},
    )


async def list_my_bookings(api: ApiClient) -> list[Booking]:
    resp = await api.request(MY_BOOKINGS_PATH)
    return _collection(resp, "bookings", _to_booking)

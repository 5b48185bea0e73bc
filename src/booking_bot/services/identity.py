from typing import Any

from booking_bot.dto import AccountUser
from booking_bot.services.api import ApiClient
from booking_bot.services.errors import ApiError

LOGIN_PATH = "/auth/login"
REGISTER_PATH = "/auth/register"
AVAILABILITY_PATH = "/api/users/{user_id}/availability"


def _to_user(data: dict) -> AccountUser:
    return AccountUser(
        id=str(data["id"]),
        name=data.get("name") or "",
        email=data.get("email") or "",
        role=data.get("role") or "",
        is_available=bool(data.get("is_available", False)),
    )


async def login(api: ApiClient, *, email: str, password: str) -> tuple[str, AccountUser]:
    resp = await api.request(
        LOGIN_PATH,
        method="POST",
        json={"email": email, "password": password},
    )
    try:
        token = resp["token"]
        user = _to_user(resp["user"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ApiError("Malformed login response") from exc
    if not token:
        raise ApiError("Login response carries no token")
    return token, user


async def register(api: ApiClient, *, name: str, email: str, password: str, role: str) -> Any:
    return await api.request(
        REGISTER_PATH,
        method="POST",
        json={"name": name, "email": email, "password": password, "role": role},
    )


async def set_availability(api: ApiClient, *, user_id: str, is_available: bool) -> Any:
    return await api.request(
        AVAILABILITY_PATH.format(user_id=user_id),
        method="PATCH",
        json={"is_available": is_available},
    )

"""Derived view-state for the dashboards.

Pure functions over already-fetched collections; callers pass ``now`` so the
result is deterministic.
"""
from datetime import datetime
from typing import Iterable, Sequence

from booking_bot.dto import Booking, ProviderService, Service
from booking_bot.utils.roles import PROVIDER
from booking_bot.utils.time import ensure_aware


def is_upcoming(booking: Booking, now: datetime) -> bool:
    if booking.scheduled_time is None:
        return False
    return ensure_aware(booking.scheduled_time) > ensure_aware(now)


def partition_bookings(bookings: Iterable[Booking], now: datetime) -> tuple[list[Booking], list[Booking]]:
    upcoming: list[Booking] = []
    past: list[Booking] = []
    for b in bookings:
        (upcoming if is_upcoming(b, now) else past).append(b)
    return upcoming, past


def available_services(all_services: Sequence[Service], offerings: Iterable[ProviderService]) -> list[Service]:
    offered_ids = {ps.service.id for ps in offerings}
    return [s for s in all_services if s.id not in offered_ids]


def counterparty_name(booking: Booking, viewer_role: str) -> str:
    if viewer_role == PROVIDER:
        return booking.client_name
    return booking.provider_name

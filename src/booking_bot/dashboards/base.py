import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar, Union

from booking_bot.dto import AccountUser, Booking, Service
from booking_bot.services import calendar as cal_svc
from booking_bot.services.api import ApiClient
from booking_bot.services.errors import ApiError
from booking_bot.views import partition_bookings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    is_error: bool = False

    @property
    def text(self) -> str:
        return f"{self.title}\n{self.description}" if self.description else self.title


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class ServiceSelected:
    service: Service
    scheduled_time: str = ""


@dataclass(frozen=True)
class Submitting:
    service: Service
    scheduled_time: str


Phase = Union[Idle, ServiceSelected, Submitting]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Dashboard:
    def __init__(self, api: ApiClient, user: AccountUser, *, clock: Callable[[], datetime] = utcnow):
        self.api = api
        self.user = user
        self.clock = clock
        self.bookings: list[Booking] = []
        self._busy: set[str] = set()

    def is_busy(self, action: str) -> bool:
        return action in self._busy

    @property
    def has_pending(self) -> bool:
        return bool(self._busy)

    @contextmanager
    def _running(self, action: str):
        self._busy.add(action)
        try:
            yield
        finally:
            self._busy.discard(action)

    async def _fetch(self, what: str, op: Callable[[], Awaitable[list[T]]]) -> list[T]:
        """Run a list fetch; a failure yields an empty collection instead of raising."""
        try:
            return await op()
        except ApiError as exc:
            logger.warning("dashboard: fetch %s failed user_id=%s: %s", what, self.user.id, exc)
            return []

    async def refresh_bookings(self) -> None:
        self.bookings = await self._fetch("bookings", lambda: cal_svc.list_my_bookings(self.api))

    @property
    def upcoming(self) -> list[Booking]:
        return partition_bookings(self.bookings, self.clock())[0]

    @property
    def past(self) -> list[Booking]:
        return partition_bookings(self.bookings, self.clock())[1]

import logging

from booking_bot.dashboards.base import Dashboard, Notification
from booking_bot.dto import ProviderService, Service
from booking_bot.services import calendar as cal_svc
from booking_bot.services import identity as identity_svc
from booking_bot.services.errors import ApiError
from booking_bot.views import available_services

logger = logging.getLogger(__name__)

AVAILABILITY_ACTION = "availability"
OFFERINGS_ACTION = "offerings"


class ProviderDashboard(Dashboard):
    """Provider view: availability switch, offerings and the booking list."""

    def __init__(self, api, user, **kwargs):
        super().__init__(api, user, **kwargs)
        self.is_available = bool(user.is_available)
        self.services: list[Service] = []
        self.offerings: list[ProviderService] = []

    async def load(self) -> None:
        await self.refresh_bookings()
        await self.refresh_services()
        await self.refresh_offerings()

    async def refresh_services(self) -> None:
        self.services = await self._fetch("services", lambda: cal_svc.list_services(self.api))

    async def refresh_offerings(self) -> None:
        self.offerings = await self._fetch(
            "provider_services",
            lambda: cal_svc.list_provider_services(self.api, provider_id=self.user.id),
        )

    @property
    def available_services(self) -> list[Service]:
        return available_services(self.services, self.offerings)

    async def toggle_availability(self) -> Notification | None:
        if self.is_busy(AVAILABILITY_ACTION):
            return None
        target = not self.is_available
        with self._running(AVAILABILITY_ACTION):
            try:
                await identity_svc.set_availability(self.api, user_id=self.user.id, is_available=target)
            except ApiError as exc:
                logger.warning(
                    "provider.availability failed user_id=%s target=%s status=%s",
                    self.user.id,
                    target,
                    exc.status,
                )
                return Notification(
                    title="Update failed",
                    description="Could not update availability. Please try again.",
                    is_error=True,
                )

        self.is_available = target
        self.user.is_available = target
        logger.info("provider.availability user_id=%s is_available=%s", self.user.id, target)
        state = "available" if target else "unavailable"
        return Notification(
            title="Availability updated",
            description=f"You are now {state} for new bookings.",
        )

    async def add_service(self, service_id: str) -> Notification | None:
        if self.is_busy(OFFERINGS_ACTION):
            return None
        service = next((s for s in self.available_services if s.id == service_id), None)
        if service is None:
            return None
        with self._running(OFFERINGS_ACTION):
            try:
                await cal_svc.add_provider_service(self.api, provider_id=self.user.id, service_id=service_id)
            except ApiError as exc:
                logger.warning(
                    "provider.add_service failed user_id=%s service_id=%s status=%s",
                    self.user.id,
                    service_id,
                    exc.status,
                )
                note = Notification(
                    title="Could not add service",
                    description="Please try again.",
                    is_error=True,
                )
            else:
                note = Notification(
                    title="Service added",
                    description=f"{service.name} is now part of your offerings.",
                )
            await self.refresh_offerings()
        return note

    async def remove_offering(self, provider_service_id: str) -> Notification | None:
        if self.is_busy(OFFERINGS_ACTION):
            return None
        offering = next((ps for ps in self.offerings if ps.id == provider_service_id), None)
        if offering is None:
            return None
        with self._running(OFFERINGS_ACTION):
            try:
                await cal_svc.remove_provider_service(self.api, provider_service_id=provider_service_id)
            except ApiError as exc:
                logger.warning(
                    "provider.remove_service failed user_id=%s provider_service_id=%s status=%s",
                    self.user.id,
                    provider_service_id,
                    exc.status,
                )
                note = Notification(
                    title="Could not remove service",
                    description="Please try again.",
                    is_error=True,
                )
            else:
                note = Notification(
                    title="Service removed",
                    description=f"{offering.service.name} is no longer offered.",
                )
            await self.refresh_offerings()
        return note

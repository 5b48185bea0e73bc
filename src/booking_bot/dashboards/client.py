import logging
from dataclasses import replace

from booking_bot.dashboards.base import Dashboard, Idle, Notification, Phase, ServiceSelected, Submitting
from booking_bot.dto import Service
from booking_bot.services import calendar as cal_svc
from booking_bot.services.errors import ApiError

logger = logging.getLogger(__name__)

BOOKING_ACTION = "booking"


class ClientDashboard(Dashboard):
    """Client view: pick a service, enter a time, submit a booking."""

    def __init__(self, api, user, **kwargs):
        super().__init__(api, user, **kwargs)
        self.services: list[Service] = []
        self.phase: Phase = Idle()

    async def load(self) -> None:
        await self.refresh_services()
        await self.refresh_bookings()

    async def refresh_services(self) -> None:
        self.services = await self._fetch("services", lambda: cal_svc.list_services(self.api))

    def find_service(self, service_id: str) -> Service | None:
        return next((s for s in self.services if s.id == service_id), None)

    def select_service(self, service_id: str) -> Service | None:
        if isinstance(self.phase, Submitting):
            return None
        service = self.find_service(service_id)
        if service is None:
            return None
        self.phase = ServiceSelected(service=service)
        return service

    def set_scheduled_time(self, value: str) -> bool:
        if not isinstance(self.phase, ServiceSelected):
            return False
        self.phase = replace(self.phase, scheduled_time=value)
        return True

    def cancel_selection(self) -> None:
        if isinstance(self.phase, Submitting):
            return
        self.phase = Idle()

    async def submit_booking(self) -> Notification | None:
        phase = self.phase
        if not isinstance(phase, ServiceSelected) or not phase.scheduled_time:
            return None
        if self.is_busy(BOOKING_ACTION):
            return None

        self.phase = Submitting(service=phase.service, scheduled_time=phase.scheduled_time)
        with self._running(BOOKING_ACTION):
            try:
                await cal_svc.create_booking(
                    self.api,
                    service_id=phase.service.id,
                    scheduled_time=phase.scheduled_time,
                )
            except ApiError as exc:
                logger.warning(
                    "client.booking failed user_id=%s service_id=%s status=%s",
                    self.user.id,
                    phase.service.id,
                    exc.status,
                )
                self.phase = phase
                return Notification(
                    title="Booking failed",
                    description="Please try again or contact support.",
                    is_error=True,
                )

        logger.info("client.booking created user_id=%s service_id=%s", self.user.id, phase.service.id)
        self.phase = Idle()
        await self.refresh_bookings()
        return Notification(
            title="Booking confirmed!",
            description=f"Your {phase.service.name} has been booked successfully.",
        )

from booking_bot.dashboards.base import Idle, Notification, ServiceSelected, Submitting
from booking_bot.dashboards.client import ClientDashboard
from booking_bot.dashboards.provider import ProviderDashboard
from booking_bot.dashboards.registry import DashboardRegistry

__all__ = [
    "ClientDashboard",
    "DashboardRegistry",
    "Idle",
    "Notification",
    "ProviderDashboard",
    "ServiceSelected",
    "Submitting",
]

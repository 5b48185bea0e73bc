from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AccountUser:
    id: str
    name: str
    email: str
    role: str
    is_available: bool = False


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    description: str
    price: Optional[float] = None


@dataclass(frozen=True)
class ProviderService:
    id: str
    provider_id: str
    service: Service


@dataclass
class Booking:
    id: str
    service_name: str
    provider_name: str
    client_name: str
    scheduled_time: Optional[datetime]
    status: str

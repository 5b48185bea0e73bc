from booking_bot.models.account import Account
from booking_bot.models.base import Base

__all__ = ["Account", "Base"]

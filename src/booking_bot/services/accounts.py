"""Per-Telegram-user storage of the backend token and profile."""
from typing import Optional

from booking_bot.db import get_async_session
from booking_bot.dto import AccountUser
from booking_bot.models.account import Account


def to_user(account: Account) -> AccountUser:
    return AccountUser(
        id=account.user_id,
        name=account.name or "",
        email=account.email or "",
        role=account.role,
        is_available=bool(account.is_available),
    )


async def save_account(session_factory, *, telegram_id: int, user: AccountUser, token: str) -> Account:
    async with get_async_session(session_factory) as session:
        account = await session.get(Account, telegram_id)
        if account is None:
            account = Account(telegram_id=telegram_id)
            session.add(account)
        account.user_id = user.id
        account.name = user.name
        account.email = user.email
        account.role = user.role
        account.is_available = user.is_available
        account.token = token
        await session.commit()
        await session.refresh(account)
        return account


async def get_account(session_factory, *, telegram_id: int) -> Optional[Account]:
    async with get_async_session(session_factory) as session:
        return await session.get(Account, telegram_id)


async def set_availability(session_factory, *, telegram_id: int, is_available: bool) -> Account:
    async with get_async_session(session_factory) as session:
        account = await session.get(Account, telegram_id)
        if account is None:
            raise LookupError(f"No stored account for telegram_id={telegram_id}")
        account.is_available = is_available
        await session.commit()
        await session.refresh(account)
        return account


async def delete_account(session_factory, *, telegram_id: int) -> bool:
    async with get_async_session(session_factory) as session:
        account = await session.get(Account, telegram_id)
        if account is None:
            return False
        await session.delete(account)
        await session.commit()
        return True

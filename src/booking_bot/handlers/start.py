import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandStart, StateFilter
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from booking_bot.dashboards import DashboardRegistry
from booking_bot.keyboards import start_keyboard
from booking_bot.services import accounts
from booking_bot.services.backend import BackendClients
from .utils import dispose_dashboard, open_dashboard, show_dashboard

router = Router()
logger = logging.getLogger(__name__)

GREETING = (
    "Hi! I help you book services and manage appointments.\n"
    "Log in with your booking account or create a new one."
)


@router.message(CommandStart(), StateFilter("*"))
async def handle_start(
    message: Message,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
) -> None:
    telegram_id = message.from_user.id
    await state.clear()
    dispose_dashboard(telegram_id, dashboards)

    account = await accounts.get_account(session_factory, telegram_id=telegram_id)
    if account is None:
        logger.info("start: no stored account tg=%s", telegram_id)
        await message.answer(GREETING, reply_markup=start_keyboard())
        return

    dash = await open_dashboard(telegram_id, account, backend, dashboards)
    await show_dashboard(message, state, dash, as_edit=False)


@router.message(Command("logout"), StateFilter("*"))
async def handle_logout(message: Message, state: FSMContext, session_factory, dashboards: DashboardRegistry) -> None:
    telegram_id = message.from_user.id
    await state.clear()
    dispose_dashboard(telegram_id, dashboards)
    removed = await accounts.delete_account(session_factory, telegram_id=telegram_id)
    logger.info("logout: tg=%s removed=%s", telegram_id, removed)
    await message.answer("You have been logged out.", reply_markup=start_keyboard())


@router.callback_query(F.data == "noop")
async def handle_noop(callback: CallbackQuery) -> None:
    await callback.answer("Please wait…")

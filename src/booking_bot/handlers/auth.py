import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from booking_bot.dashboards import DashboardRegistry
from booking_bot.keyboards import role_keyboard, start_keyboard
from booking_bot.services import accounts
from booking_bot.services import identity as identity_svc
from booking_bot.services.backend import BackendClients
from booking_bot.services.errors import ApiError
from booking_bot.states import AuthStates
from booking_bot.utils.roles import normalize_role, role_label
from .utils import open_dashboard, show_dashboard

router = Router()
logger = logging.getLogger(__name__)


def _looks_like_email(value: str) -> bool:
    local, _, domain = value.partition("@")
    return bool(local) and "." in domain


async def _drop_secret(message: Message) -> None:
    try:
        await message.delete()
    except TelegramBadRequest:
        logger.warning("auth: could not delete password message tg=%s", message.from_user.id)


@router.callback_query(F.data == "auth:login")
async def start_login(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await state.set_state(AuthStates.login_email)
    await callback.message.edit_text("Log in\nSend your email:")
    await callback.answer()


@router.message(AuthStates.login_email)
async def login_email(message: Message, state: FSMContext):
    email = (message.text or "").strip()
    if not _looks_like_email(email):
        await message.answer("That does not look like an email. Try again:")
        return
    await state.update_data(email=email)
    await state.set_state(AuthStates.login_password)
    await message.answer("Now send your password:")


@router.message(AuthStates.login_password)
async def login_password(
    message: Message,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    password = (message.text or "").strip()
    await _drop_secret(message)
    if not password:
        await message.answer("Password cannot be empty. Send your password:")
        return
    data = await state.get_data()
    telegram_id = message.from_user.id
    try:
        token, user = await identity_svc.login(backend.api(), email=data.get("email", ""), password=password)
    except ApiError as exc:
        logger.warning("auth.login failed tg=%s status=%s", telegram_id, exc.status)
        await state.clear()
        await message.answer("Login failed. Check your email and password.", reply_markup=start_keyboard())
        return

    if normalize_role(user.role) is None:
        logger.warning("auth.login unknown role tg=%s user_id=%s role=%s", telegram_id, user.id, user.role)
        await state.clear()
        await message.answer("This account has no dashboard here.", reply_markup=start_keyboard())
        return

    account = await accounts.save_account(session_factory, telegram_id=telegram_id, user=user, token=token)
    logger.info("auth.login ok tg=%s user_id=%s role=%s", telegram_id, user.id, user.role)
    await state.clear()
    await message.answer(f"Logged in as {user.name or user.email} ({role_label(user.role)}).")
    dash = await open_dashboard(telegram_id, account, backend, dashboards)
    await show_dashboard(message, state, dash, as_edit=False)


@router.callback_query(F.data == "auth:register")
async def start_register(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await state.set_state(AuthStates.register_name)
    await callback.message.edit_text("Create account\nSend your full name:")
    await callback.answer()


@router.message(AuthStates.register_name)
async def register_name(message: Message, state: FSMContext):
    name = (message.text or "").strip()
    if not name:
        await message.answer("Name cannot be empty. Send your full name:")
        return
    await state.update_data(name=name)
    await state.set_state(AuthStates.register_email)
    await message.answer("Send your email:")


@router.message(AuthStates.register_email)
async def register_email(message: Message, state: FSMContext):
    email = (message.text or "").strip()
    if not _looks_like_email(email):
        await message.answer("That does not look like an email. Try again:")
        return
    await state.update_data(email=email)
    await state.set_state(AuthStates.register_password)
    await message.answer("Choose a password:")


@router.message(AuthStates.register_password)
async def register_password(message: Message, state: FSMContext):
    password = (message.text or "").strip()
    await _drop_secret(message)
    if len(password) < 6:
        await message.answer("Password must be at least 6 characters. Choose a password:")
        return
    await state.update_data(password=password)
    await state.set_state(AuthStates.register_role)
    await message.answer("How will you use the service?", reply_markup=role_keyboard())


@router.callback_query(AuthStates.register_role, F.data.startswith("auth:role:"))
async def register_role(callback: CallbackQuery, state: FSMContext, backend: BackendClients):
    role = normalize_role(callback.data.split(":", 2)[-1])
    if role is None:
        await callback.answer("Unknown role", show_alert=True)
        return
    data = await state.get_data()
    try:
        await identity_svc.register(
            backend.api(),
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=role,
        )
    except ApiError as exc:
        logger.warning("auth.register failed tg=%s status=%s", callback.from_user.id, exc.status)
        await state.clear()
        await callback.message.edit_text(
            "Registration failed. Please try again later.", reply_markup=start_keyboard()
        )
        await callback.answer()
        return

    logger.info("auth.register ok tg=%s role=%s", callback.from_user.id, role)
    await state.clear()
    await callback.message.edit_text(
        f"Account created as {role_label(role)}. You can log in now.", reply_markup=start_keyboard()
    )
    await callback.answer()


@router.callback_query(F.data == "auth:cancel")
async def cancel_auth(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await callback.message.edit_text("Log in or create an account.", reply_markup=start_keyboard())
    await callback.answer()

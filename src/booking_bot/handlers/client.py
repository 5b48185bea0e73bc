import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from booking_bot.dashboards import ClientDashboard, DashboardRegistry, ServiceSelected, Submitting
from booking_bot.dashboards.client import BOOKING_ACTION
from booking_bot.keyboards import booking_confirm_keyboard, booking_time_keyboard, start_keyboard
from booking_bot.services.backend import BackendClients
from booking_bot.states import ClientStates
from booking_bot.utils.time import parse_scheduled_time
from .utils import get_dashboard, safe_edit, show_dashboard

router = Router()
logger = logging.getLogger(__name__)

TIME_PROMPT = (
    "Send your preferred date and time, for example 2025-01-01 10:00 "
    "(also accepted: 2025-01-01T10:00 or 01.01.2025 10:00)."
)
IN_PROGRESS = "A booking is already in progress."


async def _client_dashboard(telegram_id: int, session_factory, backend, dashboards) -> ClientDashboard | None:
    dash = await get_dashboard(telegram_id, session_factory, backend, dashboards)
    if isinstance(dash, ClientDashboard):
        return dash
    return None


def _booking_in_progress(dash: ClientDashboard) -> bool:
    return isinstance(dash.phase, Submitting) or dash.is_busy(BOOKING_ACTION)


def _confirm_text(phase: ServiceSelected) -> str:
    return f"Book {phase.service.name} at {phase.scheduled_time.replace('T', ' ')}?"


@router.callback_query(F.data.startswith("client:service:"))
async def on_service_chosen(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    service_id = callback.data.split(":", 2)[-1]
    dash = await _client_dashboard(callback.from_user.id, session_factory, backend, dashboards)
    if dash is None:
        await callback.answer("Please log in again with /start", show_alert=True)
        return
    if _booking_in_progress(dash):
        await callback.answer(IN_PROGRESS)
        return
    service = dash.select_service(service_id)
    if service is None:
        await callback.answer("This service is no longer available.", show_alert=True)
        return
    await state.set_state(ClientStates.booking_time)
    await safe_edit(
        callback.message,
        f"Book {service.name}\n{service.description}\n\n{TIME_PROMPT}",
        reply_markup=booking_time_keyboard(),
    )
    await callback.answer()


@router.message(ClientStates.booking_time)
async def on_time_entered(
    message: Message,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _client_dashboard(message.from_user.id, session_factory, backend, dashboards)
    if dash is None:
        await message.answer("Please log in again with /start", reply_markup=start_keyboard())
        return
    if not isinstance(dash.phase, ServiceSelected):
        await message.answer("Please choose a service first.")
        await show_dashboard(message, state, dash, as_edit=False)
        return
    scheduled_time = parse_scheduled_time(message.text or "")
    if scheduled_time is None:
        await message.answer(f"That time is not valid or already passed.\n{TIME_PROMPT}")
        return
    dash.set_scheduled_time(scheduled_time)
    await state.set_state(ClientStates.booking_confirm)
    await message.answer(_confirm_text(dash.phase), reply_markup=booking_confirm_keyboard())


@router.callback_query(ClientStates.booking_confirm, F.data == "client:booking:confirm")
async def on_booking_confirm(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _client_dashboard(callback.from_user.id, session_factory, backend, dashboards)
    if dash is not None and _booking_in_progress(dash):
        # the first tap owns the message and the FSM state until it finishes
        await callback.answer(IN_PROGRESS)
        return
    if dash is None or not isinstance(dash.phase, ServiceSelected):
        await callback.answer("Please choose a service again.", show_alert=True)
        if dash is not None:
            await show_dashboard(callback.message, state, dash, as_edit=True)
        return

    await safe_edit(callback.message, _confirm_text(dash.phase), reply_markup=booking_confirm_keyboard(busy=True))
    note = await dash.submit_booking()
    if note is None:
        await callback.answer(IN_PROGRESS)
        return
    if note.is_error:
        await state.set_state(ClientStates.booking_confirm)
        await safe_edit(
            callback.message,
            f"{note.text}\n\n{_confirm_text(dash.phase)}",
            reply_markup=booking_confirm_keyboard(),
        )
        await callback.answer(note.title, show_alert=True)
        return

    await callback.answer(note.title)
    await callback.message.answer(note.text)
    await show_dashboard(callback.message, state, dash, as_edit=False)


@router.callback_query(F.data == "client:booking:cancel")
async def on_booking_cancel(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _client_dashboard(callback.from_user.id, session_factory, backend, dashboards)
    if dash is None:
        await callback.answer("Please log in again with /start", show_alert=True)
        return
    if _booking_in_progress(dash):
        await callback.answer(IN_PROGRESS)
        return
    dash.cancel_selection()
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer()


@router.callback_query(F.data == "client:refresh")
async def on_refresh(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _client_dashboard(callback.from_user.id, session_factory, backend, dashboards)
    if dash is None:
        await callback.answer("Please log in again with /start", show_alert=True)
        return
    await dash.load()
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer("Updated")


@router.callback_query(F.data.startswith("client:page:"))
async def on_page(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    page = int(callback.data.rsplit(":", 1)[-1])
    dash = await _client_dashboard(callback.from_user.id, session_factory, backend, dashboards)
    if dash is None:
        await callback.answer("Please log in again with /start", show_alert=True)
        return
    await show_dashboard(callback.message, state, dash, as_edit=True, page=page)
    await callback.answer()

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery

from booking_bot.dashboards import DashboardRegistry, ProviderDashboard
from booking_bot.keyboards import (
    provider_add_service_keyboard,
    provider_dashboard_keyboard,
    provider_remove_service_keyboard,
)
from booking_bot.services import accounts
from booking_bot.services.backend import BackendClients
from .utils import get_dashboard, render_provider, safe_edit, show_dashboard

router = Router()
logger = logging.getLogger(__name__)


async def _provider_dashboard(callback: CallbackQuery, session_factory, backend, dashboards) -> ProviderDashboard | None:
    dash = await get_dashboard(callback.from_user.id, session_factory, backend, dashboards)
    if isinstance(dash, ProviderDashboard):
        return dash
    await callback.answer("Please log in as a provider with /start", show_alert=True)
    return None


@router.callback_query(F.data == "provider:availability")
async def on_toggle_availability(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    await safe_edit(
        callback.message,
        render_provider(dash),
        reply_markup=provider_dashboard_keyboard(dash.is_available, busy=True),
    )
    note = await dash.toggle_availability()
    if note is None:
        await callback.answer("Availability update already in progress.")
        return
    if not note.is_error:
        try:
            await accounts.set_availability(
                session_factory, telegram_id=callback.from_user.id, is_available=dash.is_available
            )
        except LookupError:
            logger.warning("provider.availability: no stored account tg=%s", callback.from_user.id)
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer(note.text, show_alert=note.is_error)


@router.callback_query(F.data == "provider:service:add")
async def on_add_service_menu(
    callback: CallbackQuery,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    candidates = dash.available_services
    if not candidates:
        await callback.answer("You already offer every service.", show_alert=True)
        return
    await safe_edit(callback.message, "Choose a service to add:", reply_markup=provider_add_service_keyboard(candidates))
    await callback.answer()


@router.callback_query(F.data.startswith("provider:service:add:"))
async def on_add_service(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    service_id = callback.data.split(":", 3)[-1]
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    note = await dash.add_service(service_id)
    if note is None:
        await callback.answer("This service cannot be added right now.")
        return
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer(note.text, show_alert=note.is_error)


@router.callback_query(F.data == "provider:service:remove")
async def on_remove_service_menu(
    callback: CallbackQuery,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    if not dash.offerings:
        await callback.answer("You do not offer any services yet.", show_alert=True)
        return
    await safe_edit(
        callback.message,
        "Choose a service to remove:",
        reply_markup=provider_remove_service_keyboard(dash.offerings),
    )
    await callback.answer()


@router.callback_query(F.data.startswith("provider:service:remove:"))
async def on_remove_service(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    provider_service_id = callback.data.split(":", 3)[-1]
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    note = await dash.remove_offering(provider_service_id)
    if note is None:
        await callback.answer("This service cannot be removed right now.")
        return
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer(note.text, show_alert=note.is_error)


@router.callback_query(F.data == "provider:menu")
async def on_menu(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer()


@router.callback_query(F.data == "provider:refresh")
async def on_refresh(
    callback: CallbackQuery,
    state: FSMContext,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    await dash.load()
    await show_dashboard(callback.message, state, dash, as_edit=True)
    await callback.answer("Updated")


@router.callback_query(F.data.startswith("provider:add_page:"))
async def on_add_service_page(
    callback: CallbackQuery,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    page = int(callback.data.rsplit(":", 1)[-1])
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    await safe_edit(
        callback.message,
        "Choose a service to add:",
        reply_markup=provider_add_service_keyboard(dash.available_services, page),
    )
    await callback.answer()


@router.callback_query(F.data.startswith("provider:remove_page:"))
async def on_remove_service_page(
    callback: CallbackQuery,
    backend: BackendClients,
    session_factory,
    dashboards: DashboardRegistry,
):
    page = int(callback.data.rsplit(":", 1)[-1])
    dash = await _provider_dashboard(callback, session_factory, backend, dashboards)
    if dash is None:
        return
    await safe_edit(
        callback.message,
        "Choose a service to remove:",
        reply_markup=provider_remove_service_keyboard(dash.offerings, page),
    )
    await callback.answer()

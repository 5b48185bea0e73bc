import logging

from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext

from booking_bot.dashboards import ClientDashboard, DashboardRegistry, ProviderDashboard, ServiceSelected
from booking_bot.dto import Booking
from booking_bot.keyboards import client_dashboard_keyboard, provider_dashboard_keyboard
from booking_bot.services import accounts
from booking_bot.services.backend import BackendClients
from booking_bot.states import ClientStates, ProviderStates
from booking_bot.utils.roles import CLIENT, PROVIDER
from booking_bot.utils.time import fmt_dt
from booking_bot.views import counterparty_name

logger = logging.getLogger(__name__)

Dashboard = ClientDashboard | ProviderDashboard

MESSAGE_LIMIT = 4000


def truncate(text: str, limit: int = 120) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def format_bookings(bookings: list[Booking], viewer_role: str) -> list[str]:
    label = "Client" if viewer_role == PROVIDER else "Provider"
    lines = []
    for b in bookings:
        lines.append(
            "\n".join(
                [
                    f"• {fmt_dt(b.scheduled_time)} — {b.service_name or '—'}",
                    f"  {label}: {counterparty_name(b, viewer_role) or '—'} · Status: {b.status or '—'}",
                ]
            )
        )
    return lines


def render_client(dash: ClientDashboard) -> str:
    parts = [
        f"Welcome back, {dash.user.name or 'there'}!\nBook services and manage your appointments.",
    ]
    if dash.services:
        service_lines = ["Available services:"]
        for s in dash.services:
            price = f" — ${s.price:.2f}" if s.price else ""
            service_lines.append(f"• {s.name}{price}")
            if s.description:
                service_lines.append(f"  {truncate(s.description)}")
        parts.append("\n".join(service_lines))
    else:
        parts.append("No services available right now.")

    if not dash.bookings:
        parts.append("No bookings yet. Book your first service!")
    else:
        upcoming, past = dash.upcoming, dash.past
        parts.append(
            "\n".join([f"Upcoming bookings ({len(upcoming)}):", *(format_bookings(upcoming, CLIENT) or ["Nothing scheduled"])])
        )
        if past:
            parts.append("\n".join([f"Past bookings ({len(past)}):", *format_bookings(past, CLIENT)]))
    if isinstance(dash.phase, ServiceSelected):
        parts.append(f"Selected: {dash.phase.service.name}")
    return "\n\n".join(parts)


def render_provider(dash: ProviderDashboard) -> str:
    status = "✅ Available for new bookings" if dash.is_available else "❌ Not accepting new bookings"
    parts = [
        "Provider dashboard\nManage your availability and view appointments.",
        f"Availability: {status}",
    ]
    if dash.offerings:
        parts.append("\n".join([f"My services ({len(dash.offerings)}):", *[f"• {ps.service.name}" for ps in dash.offerings]]))
    else:
        parts.append("You do not offer any services yet.")

    upcoming, past = dash.upcoming, dash.past
    parts.append(
        "\n".join([f"Upcoming appointments ({len(upcoming)}):", *(format_bookings(upcoming, PROVIDER) or ["No upcoming appointments"])])
    )
    parts.append(
        "\n".join([f"Completed services ({len(past)}):", *(format_bookings(past, PROVIDER) or ["No completed services yet"])])
    )
    return "\n\n".join(parts)


def render(dash: Dashboard, page: int = 0) -> tuple[str, object]:
    if isinstance(dash, ProviderDashboard):
        markup = provider_dashboard_keyboard(
            dash.is_available,
            can_add=bool(dash.available_services),
            can_remove=bool(dash.offerings),
        )
        return render_provider(dash), markup
    selected = dash.phase.service.id if isinstance(dash.phase, ServiceSelected) else None
    return render_client(dash), client_dashboard_keyboard(dash.services, selected, page)


async def safe_edit(message, text: str, reply_markup=None):
    try:
        await message.edit_text(text, reply_markup=reply_markup)
        return True
    except TelegramBadRequest as exc:
        if "message is not modified" in str(exc):
            return False
        raise


async def show_dashboard(message, state: FSMContext, dash: Dashboard, *, as_edit: bool, page: int = 0) -> None:
    text, markup = render(dash, page)
    text = truncate(text, MESSAGE_LIMIT)
    await state.set_state(ProviderStates.dashboard if isinstance(dash, ProviderDashboard) else ClientStates.dashboard)
    if as_edit:
        try:
            await safe_edit(message, text, reply_markup=markup)
            return
        except TelegramBadRequest:
            logger.exception("dashboard: edit failed, sending new message chat=%s", message.chat.id)
    await message.answer(text, reply_markup=markup)


async def open_dashboard(
    telegram_id: int,
    account,
    backend: BackendClients,
    dashboards: DashboardRegistry,
) -> Dashboard:
    user = accounts.to_user(account)
    api = backend.api(account.token)
    dash: Dashboard = ProviderDashboard(api, user) if user.role == PROVIDER else ClientDashboard(api, user)
    await dash.load()
    dashboards[telegram_id] = dash
    logger.info("dashboard: opened tg=%s role=%s user_id=%s", telegram_id, user.role, user.id)
    return dash


async def get_dashboard(
    telegram_id: int,
    session_factory,
    backend: BackendClients,
    dashboards: DashboardRegistry,
) -> Dashboard | None:
    dash = dashboards.get(telegram_id)
    if dash is not None:
        return dash
    account = await accounts.get_account(session_factory, telegram_id=telegram_id)
    if account is None:
        return None
    return await open_dashboard(telegram_id, account, backend, dashboards)


def dispose_dashboard(telegram_id: int, dashboards: DashboardRegistry) -> None:
    if dashboards.pop(telegram_id, None) is not None:
        logger.info("dashboard: disposed tg=%s", telegram_id)

"""Tests for the aiogram handlers, called directly with mocked Telegram objects."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage

from booking_bot.dashboards import (
    ClientDashboard,
    DashboardRegistry,
    Idle,
    ProviderDashboard,
    ServiceSelected,
    Submitting,
)
from booking_bot.handlers import auth as auth_handlers
from booking_bot.handlers import client as client_handlers
from booking_bot.handlers import provider as provider_handlers
from booking_bot.handlers import start as start_handlers
from booking_bot.services import accounts
from booking_bot.states import AuthStates, ClientStates, ProviderStates

TG_ID = 555

SERVICES = {
    "services": [
        {"id": "svc-1", "name": "Haircut", "description": "Classic cut", "price": 25},
        {"id": "svc-2", "name": "Shave", "description": "Hot towel"},
    ]
}
NO_BOOKINGS = {"bookings": []}


def make_callback(data: str, user_id: int = TG_ID):
    message = MagicMock()
    message.chat.id = user_id
    message.edit_text = AsyncMock()
    message.answer = AsyncMock()
    callback = MagicMock()
    callback.data = data
    callback.from_user.id = user_id
    callback.message = message
    callback.answer = AsyncMock()
    return callback


def make_message(text: str, user_id: int = TG_ID):
    message = MagicMock()
    message.text = text
    message.from_user.id = user_id
    message.chat.id = user_id
    message.answer = AsyncMock()
    message.delete = AsyncMock()
    return message


async def wait_for(predicate):
    for _ in range(100):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def state() -> FSMContext:
    return FSMContext(storage=MemoryStorage(), key=StorageKey(bot_id=1, chat_id=TG_ID, user_id=TG_ID))


@pytest_asyncio.fixture
async def clients(backend):
    clients = backend.clients()
    yield clients
    await clients.close()


@pytest.fixture
def dashboards() -> DashboardRegistry:
    return DashboardRegistry()


class TestBookingConfirm:
    @pytest_asyncio.fixture
    async def dash(self, backend, clients, dashboards, client_user, clock, state):
        backend.on("GET", "/api/services", json=SERVICES)
        backend.on("GET", "/bookings/me", json=NO_BOOKINGS)
        dash = ClientDashboard(clients.api("tok"), client_user, clock=clock)
        await dash.load()
        dash.select_service("svc-1")
        dash.set_scheduled_time("2025-02-01T10:00")
        dashboards[TG_ID] = dash
        await state.set_state(ClientStates.booking_confirm)
        return dash

    async def confirm(self, state, clients, session_factory, dashboards):
        callback = make_callback("client:booking:confirm")
        await client_handlers.on_booking_confirm(callback, state, clients, session_factory, dashboards)
        return callback

    @pytest.mark.asyncio
    async def test_success_returns_to_dashboard(self, backend, dash, state, clients, session_factory, dashboards):
        backend.on("POST", "/api/bookings", status=201, json={"id": "b-1"})

        callback = await self.confirm(state, clients, session_factory, dashboards)

        assert dash.phase == Idle()
        callback.answer.assert_awaited_once_with("Booking confirmed!")
        assert await state.get_state() == ClientStates.dashboard.state

    @pytest.mark.asyncio
    async def test_failure_keeps_form_and_confirm_state(self, backend, dash, state, clients, session_factory, dashboards):
        backend.on("POST", "/api/bookings", status=500, json={})

        callback = await self.confirm(state, clients, session_factory, dashboards)

        assert isinstance(dash.phase, ServiceSelected)
        assert dash.phase.scheduled_time == "2025-02-01T10:00"
        callback.answer.assert_awaited_once_with("Booking failed", show_alert=True)
        assert await state.get_state() == ClientStates.booking_confirm.state

    @pytest.mark.asyncio
    async def test_second_tap_while_submitting_leaves_retry_usable(
        self, backend, dash, state, clients, session_factory, dashboards
    ):
        gate = asyncio.Event()
        backend.on("POST", "/api/bookings", status=500, json={}, gate=gate)

        first = asyncio.create_task(self.confirm(state, clients, session_factory, dashboards))
        await wait_for(lambda: isinstance(dash.phase, Submitting))

        second = await self.confirm(state, clients, session_factory, dashboards)

        second.answer.assert_awaited_once_with(client_handlers.IN_PROGRESS)
        second.message.edit_text.assert_not_awaited()
        assert await state.get_state() == ClientStates.booking_confirm.state

        gate.set()
        await first
        assert isinstance(dash.phase, ServiceSelected)
        assert await state.get_state() == ClientStates.booking_confirm.state

        backend.on("POST", "/api/bookings", status=201, json={"id": "b-1"})
        retry = await self.confirm(state, clients, session_factory, dashboards)

        retry.answer.assert_awaited_once_with("Booking confirmed!")
        assert dash.phase == Idle()
        assert len(backend.calls("POST", "/api/bookings")) == 2

    @pytest.mark.asyncio
    async def test_service_tap_while_submitting_reports_progress(self, dash, state, clients, session_factory, dashboards):
        dash.phase = Submitting(service=dash.phase.service, scheduled_time=dash.phase.scheduled_time)
        callback = make_callback("client:service:svc-2")

        await client_handlers.on_service_chosen(callback, state, clients, session_factory, dashboards)

        callback.answer.assert_awaited_once_with(client_handlers.IN_PROGRESS)
        assert isinstance(dash.phase, Submitting)
        assert await state.get_state() == ClientStates.booking_confirm.state

    @pytest.mark.asyncio
    async def test_unknown_service_is_reported_as_gone(self, dash, state, clients, session_factory, dashboards):
        callback = make_callback("client:service:svc-404")

        await client_handlers.on_service_chosen(callback, state, clients, session_factory, dashboards)

        callback.answer.assert_awaited_once_with("This service is no longer available.", show_alert=True)


class TestAvailabilityToggle:
    @pytest_asyncio.fixture(autouse=True)
    async def stored_provider(self, backend, session_factory, provider_user):
        backend.on("GET", "/api/services", json=SERVICES)
        backend.on("GET", "/api/provider-services", json={"provider_services": []})
        backend.on("GET", "/bookings/me", json=NO_BOOKINGS)
        await accounts.save_account(session_factory, telegram_id=TG_ID, user=provider_user, token="tok")

    @pytest.mark.asyncio
    async def test_confirmed_toggle_is_stored(self, backend, state, clients, session_factory, dashboards):
        backend.on("PATCH", "/api/users/42/availability", json={"is_available": True})
        callback = make_callback("provider:availability")

        await provider_handlers.on_toggle_availability(callback, state, clients, session_factory, dashboards)

        assert isinstance(dashboards.get(TG_ID), ProviderDashboard)
        assert dashboards.get(TG_ID).is_available is True
        account = await accounts.get_account(session_factory, telegram_id=TG_ID)
        assert account.is_available is True
        callback.answer.assert_awaited_once_with(
            "Availability updated\nYou are now available for new bookings.", show_alert=False
        )
        assert await state.get_state() == ProviderStates.dashboard.state

    @pytest.mark.asyncio
    async def test_failed_toggle_keeps_stored_value(self, backend, state, clients, session_factory, dashboards):
        backend.on("PATCH", "/api/users/42/availability", status=500, json={})
        callback = make_callback("provider:availability")

        await provider_handlers.on_toggle_availability(callback, state, clients, session_factory, dashboards)

        assert dashboards.get(TG_ID).is_available is False
        account = await accounts.get_account(session_factory, telegram_id=TG_ID)
        assert account.is_available is False
        assert callback.answer.await_args.kwargs == {"show_alert": True}


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_stores_token_and_opens_dashboard(self, backend, state, clients, session_factory, dashboards):
        backend.on(
            "POST",
            "/auth/login",
            json={"token": "tok-9", "user": {"id": 7, "name": "Alice", "email": "alice@example.com", "role": "client"}},
        )
        backend.on("GET", "/api/services", json=SERVICES)
        backend.on("GET", "/bookings/me", json=NO_BOOKINGS)
        await state.set_state(AuthStates.login_password)
        await state.update_data(email="alice@example.com")
        message = make_message("secret")

        await auth_handlers.login_password(message, state, clients, session_factory, dashboards)

        message.delete.assert_awaited_once()
        account = await accounts.get_account(session_factory, telegram_id=TG_ID)
        assert account.token == "tok-9"
        assert account.role == "client"
        assert isinstance(dashboards.get(TG_ID), ClientDashboard)
        assert await state.get_state() == ClientStates.dashboard.state
        assert "Authorization" not in backend.calls("POST", "/auth/login")[0].headers
        assert backend.calls("GET", "/api/services")[0].headers["Authorization"] == "Bearer tok-9"

    @pytest.mark.asyncio
    async def test_rejected_login_stores_nothing(self, backend, state, clients, session_factory, dashboards):
        backend.on("POST", "/auth/login", status=401, json={"error": "bad credentials"})
        await state.set_state(AuthStates.login_password)
        await state.update_data(email="alice@example.com")
        message = make_message("wrong")

        await auth_handlers.login_password(message, state, clients, session_factory, dashboards)

        assert await accounts.get_account(session_factory, telegram_id=TG_ID) is None
        assert TG_ID not in dashboards
        assert await state.get_state() is None
        assert message.answer.await_args.args[0].startswith("Login failed")


class TestStartAndLogout:
    @pytest.mark.asyncio
    async def test_start_with_stored_account_opens_dashboard(
        self, backend, state, clients, session_factory, dashboards, client_user
    ):
        backend.on("GET", "/api/services", json=SERVICES)
        backend.on("GET", "/bookings/me", json=NO_BOOKINGS)
        await accounts.save_account(session_factory, telegram_id=TG_ID, user=client_user, token="tok")
        message = make_message("/start")

        await start_handlers.handle_start(message, state, clients, session_factory, dashboards)

        assert isinstance(dashboards.get(TG_ID), ClientDashboard)
        assert await state.get_state() == ClientStates.dashboard.state
        message.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_without_account_shows_greeting(self, state, clients, session_factory, dashboards):
        message = make_message("/start")

        await start_handlers.handle_start(message, state, clients, session_factory, dashboards)

        assert TG_ID not in dashboards
        assert message.answer.await_args.args[0] == start_handlers.GREETING

    @pytest.mark.asyncio
    async def test_logout_disposes_dashboard_and_account(
        self, backend, state, clients, session_factory, dashboards, client_user, clock
    ):
        await accounts.save_account(session_factory, telegram_id=TG_ID, user=client_user, token="tok")
        dashboards[TG_ID] = ClientDashboard(clients.api("tok"), client_user, clock=clock)
        await state.set_state(ClientStates.booking_time)
        message = make_message("/logout")

        await start_handlers.handle_logout(message, state, session_factory, dashboards)

        assert TG_ID not in dashboards
        assert await accounts.get_account(session_factory, telegram_id=TG_ID) is None
        assert await state.get_state() is None


@pytest.mark.asyncio
async def test_client_page_shows_later_services(backend, state, clients, session_factory, dashboards, client_user, clock):
    backend.on(
        "GET",
        "/api/services",
        json={"services": [{"id": f"svc-{i}", "name": f"Service {i}", "description": ""} for i in range(1, 13)]},
    )
    backend.on("GET", "/bookings/me", json=NO_BOOKINGS)
    dash = ClientDashboard(clients.api("tok"), client_user, clock=clock)
    await dash.load()
    dashboards[TG_ID] = dash
    callback = make_callback("client:page:1")

    await client_handlers.on_page(callback, state, clients, session_factory, dashboards)

    markup = callback.message.edit_text.await_args.kwargs["reply_markup"]
    callbacks = [b.callback_data for row in markup.inline_keyboard for b in row]
    assert "client:service:svc-11" in callbacks
    assert "client:service:svc-12" in callbacks
    assert "client:service:svc-1" not in callbacks
    assert "client:page:0" in callbacks

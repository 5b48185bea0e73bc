from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from booking_bot.dto import ProviderService, Service
from booking_bot.utils.roles import CLIENT, PROVIDER

BUSY_LABEL = "⏳ Please wait…"
PAGE_SIZE = 10


def _price(service: Service) -> str:
    return f" — ${service.price:.2f}" if service.price else ""


def page_of(items: list, page: int) -> tuple[list, int, int]:
    """Slice one page out of items; an out-of-range page is clamped."""
    pages = max(1, -(-len(items) // PAGE_SIZE))
    page = min(max(page, 0), pages - 1)
    start = page * PAGE_SIZE
    return items[start : start + PAGE_SIZE], page, pages


def _pager_row(page: int, pages: int, prefix: str) -> list[InlineKeyboardButton]:
    row = []
    if page > 0:
        row.append(InlineKeyboardButton(text="⬅️ Prev", callback_data=f"{prefix}:{page - 1}"))
    if page < pages - 1:
        row.append(InlineKeyboardButton(text="Next ➡️", callback_data=f"{prefix}:{page + 1}"))
    return row


def start_keyboard():
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Log in", callback_data="auth:login")],
            [InlineKeyboardButton(text="Create account", callback_data="auth:register")],
        ]
    )


def role_keyboard():
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Client", callback_data=f"auth:role:{CLIENT}")],
            [InlineKeyboardButton(text="Service provider", callback_data=f"auth:role:{PROVIDER}")],
            [InlineKeyboardButton(text="Back", callback_data="auth:cancel")],
        ]
    )


def client_dashboard_keyboard(services: list[Service], selected_id: str | None = None, page: int = 0):
    shown, page, pages = page_of(services, page)
    buttons = []
    for s in shown:
        mark = "✅ " if s.id == selected_id else ""
        buttons.append(
            [InlineKeyboardButton(text=f"{mark}{s.name}{_price(s)}", callback_data=f"client:service:{s.id}")]
        )
    pager = _pager_row(page, pages, "client:page")
    if pager:
        buttons.append(pager)
    buttons.append([InlineKeyboardButton(text="🔄 Refresh", callback_data="client:refresh")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def booking_time_keyboard():
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Cancel", callback_data="client:booking:cancel")],
        ]
    )


def booking_confirm_keyboard(busy: bool = False):
    if busy:
        return InlineKeyboardMarkup(
            inline_keyboard=[[InlineKeyboardButton(text=BUSY_LABEL, callback_data="noop")]]
        )
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Book service", callback_data="client:booking:confirm")],
            [InlineKeyboardButton(text="Cancel", callback_data="client:booking:cancel")],
        ]
    )


def provider_dashboard_keyboard(is_available: bool, *, busy: bool = False, can_add: bool = True, can_remove: bool = True):
    if busy:
        toggle = InlineKeyboardButton(text=BUSY_LABEL, callback_data="noop")
    elif is_available:
        toggle = InlineKeyboardButton(text="🔴 Stop accepting bookings", callback_data="provider:availability")
    else:
        toggle = InlineKeyboardButton(text="🟢 Start accepting bookings", callback_data="provider:availability")
    buttons = [[toggle]]
    if can_add:
        buttons.append([InlineKeyboardButton(text="➕ Add service", callback_data="provider:service:add")])
    if can_remove:
        buttons.append([InlineKeyboardButton(text="➖ Remove service", callback_data="provider:service:remove")])
    buttons.append([InlineKeyboardButton(text="🔄 Refresh", callback_data="provider:refresh")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def provider_add_service_keyboard(services: list[Service], page: int = 0):
    shown, page, pages = page_of(services, page)
    buttons = [
        [InlineKeyboardButton(text=f"{s.name}{_price(s)}", callback_data=f"provider:service:add:{s.id}")]
        for s in shown
    ]
    pager = _pager_row(page, pages, "provider:add_page")
    if pager:
        buttons.append(pager)
    buttons.append([InlineKeyboardButton(text="◀️ Back", callback_data="provider:menu")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def provider_remove_service_keyboard(offerings: list[ProviderService], page: int = 0):
    shown, page, pages = page_of(offerings, page)
    buttons = [
        [InlineKeyboardButton(text=f"🗑 {ps.service.name}", callback_data=f"provider:service:remove:{ps.id}")]
        for ps in shown
    ]
    pager = _pager_row(page, pages, "provider:remove_page")
    if pager:
        buttons.append(pager)
    buttons.append([InlineKeyboardButton(text="◀️ Back", callback_data="provider:menu")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)

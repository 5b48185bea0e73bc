import logging
from collections import OrderedDict

from booking_bot.dashboards.base import Dashboard

logger = logging.getLogger(__name__)

DEFAULT_MAX_DASHBOARDS = 1000


class DashboardRegistry:
    """Live dashboards keyed by Telegram user id.

    Holds at most ``max_size`` entries; the least recently used idle
    dashboard is dropped first. A dropped user gets a fresh dashboard from
    stored credentials on their next action.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_DASHBOARDS):
        self.max_size = max_size
        self._items: OrderedDict[int, Dashboard] = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, telegram_id: int) -> bool:
        return telegram_id in self._items

    def get(self, telegram_id: int) -> Dashboard | None:
        dash = self._items.get(telegram_id)
        if dash is not None:
            self._items.move_to_end(telegram_id)
        return dash

    def __setitem__(self, telegram_id: int, dash: Dashboard) -> None:
        self._items[telegram_id] = dash
        self._items.move_to_end(telegram_id)
        self._evict(keep=telegram_id)

    def pop(self, telegram_id: int, default=None):
        return self._items.pop(telegram_id, default)

    def _evict(self, keep: int) -> None:
        # requests still in flight keep their dashboard alive
        for telegram_id in list(self._items):
            if len(self._items) <= self.max_size:
                return
            if telegram_id == keep or self._items[telegram_id].has_pending:
                continue
            del self._items[telegram_id]
            logger.info("dashboard: evicted tg=%s", telegram_id)

import asyncio
import logging

from booking_bot.bot import create_bot, create_dispatcher
from booking_bot.config import Settings
from booking_bot.dashboards import DashboardRegistry
from booking_bot.db import init_models, make_engine, make_session_factory
from booking_bot.handlers import router as handlers_router
from booking_bot.services.backend import BackendClients

logger = logging.getLogger(__name__)


def setup_logging(level):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def setup_dispatcher(session_factory, backend: BackendClients, max_dashboards: int = 1000):
    dispatcher = create_dispatcher()
    dispatcher.include_router(handlers_router)
    dispatcher.workflow_data["session_factory"] = session_factory
    dispatcher.workflow_data["backend"] = backend
    dispatcher.workflow_data["dashboards"] = DashboardRegistry(max_dashboards)
    return dispatcher


async def main():
    settings = Settings()
    setup_logging(settings.log_level)

    engine = make_engine(settings.database_url)
    await init_models(engine)
    backend = BackendClients(base_url=settings.api_base_url, timeout=settings.api_timeout_sec)

    bot = create_bot(settings.bot_token)
    dispatcher = setup_dispatcher(make_session_factory(engine), backend, settings.max_dashboards)
    dispatcher.workflow_data["settings"] = settings
    logger.info("booking bot starting api=%s", settings.api_base_url)

    try:
        await dispatcher.start_polling(bot)
    finally:
        await bot.session.close()
        await backend.close()
        await engine.dispose()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()

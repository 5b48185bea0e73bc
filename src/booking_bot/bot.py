from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage


def create_bot(token: str) -> Bot:
    return Bot(token=token)


def create_dispatcher() -> Dispatcher:
    return Dispatcher(storage=MemoryStorage())

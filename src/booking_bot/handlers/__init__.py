from aiogram import Router

from . import auth, client, provider, start

router = Router()
router.include_router(start.router)
router.include_router(auth.router)
router.include_router(client.router)
router.include_router(provider.router)

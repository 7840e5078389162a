from aiogram import Router

from .override import admin_router as override_router

router = Router()

router.include_router(override_router)

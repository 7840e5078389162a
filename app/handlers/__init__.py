"""
Handlers module - aiogram routers for the referral bot.

Root aggregation: admin, user.
"""
from aiogram import Router

from .admin import router as admin_router
from .user import router as user_router

router = Router()

# Admin commands are matched before the user catch-all (leaderboard)
router.include_router(admin_router)
router.include_router(user_router)

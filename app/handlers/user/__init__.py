from aiogram import Router

from .join import user_router as join_router
from .start import user_router as start_router
from .selection import user_router as selection_router
from .leaderboard import user_router as leaderboard_router

router = Router()

router.include_router(join_router)
router.include_router(start_router)
router.include_router(selection_router)
# Catch-all, must stay last
router.include_router(leaderboard_router)

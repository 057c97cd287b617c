from fastapi import APIRouter
from cockpit.api import auth, lists, users, messages, wines, stats, media, sql_console

router = APIRouter()
router.include_router(auth.router, tags=["Auth"])
router.include_router(lists.router, prefix="/lists", tags=["Lists"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(messages.router, prefix="/messages", tags=["Messages"])
router.include_router(wines.router, prefix="/wines", tags=["Wines"])
router.include_router(stats.router, prefix="/stats", tags=["Stats"])
router.include_router(media.router, prefix="/media", tags=["Media"])
router.include_router(sql_console.router, prefix="/sql", tags=["SqlConsole"])

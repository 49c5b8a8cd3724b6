from fastapi import APIRouter
from .backlog import router as backlog_router
from .sprints import router as sprints_router
from .stories import router as stories_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(backlog_router, prefix="/backlog", tags=["backlog"])
api_router.include_router(sprints_router, prefix="/sprints", tags=["sprints"])
api_router.include_router(stories_router, prefix="/stories", tags=["stories"])

from fastapi import APIRouter
from endpoints.projects import router as projects_router
from endpoints.assets import router as assets_router
from endpoints.realtime_ws import router as realtime_ws_router

api_router = APIRouter()
api_router.include_router(projects_router)
api_router.include_router(assets_router)
api_router.include_router(realtime_ws_router, tags=["realtime"])

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from routers import api_router
from config import settings
from database import engine, Base, SessionLocal
import models  # ensure model registration
from realtime import RoomRegistry, BroadcastFanout
from services.scene_store import SceneStore
from services.sync import SessionSynchronizer
from endpoints.assets import UPLOAD_URL_PREFIX
import os
import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

Base.metadata.create_all(bind=engine)
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let already dispatched events finish their writes and broadcasts
    await app.state.synchronizer.drain()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.rooms = RoomRegistry()
app.state.fanout = BroadcastFanout(app.state.rooms)
app.state.store = SceneStore(SessionLocal, timeout=settings.STORE_TIMEOUT_SECONDS)
app.state.synchronizer = SessionSynchronizer(app.state.store, app.state.rooms, app.state.fanout)

# Include API routers
app.include_router(api_router, prefix=settings.API_V1_STR)
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

@app.get("/")
async def root():
    return {"message": "Scene sync service is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=4000, reload=True)

# backend/heartline/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqladmin import Admin

from heartline.core.config import settings
from heartline.core.log_config import configure_logging
from heartline.core.responses import ok, register_exception_handlers
from heartline.api.v1.routers import api_router
from heartline.sockets.chat_socket import router as chat_socket_router
from heartline.db.database import engine, init_db
from heartline.db.database_redis import RedisManager
from heartline.vision import detector
from heartline.admin_auth import authentication_backend
from heartline.admin_panel import ADMIN_VIEWS

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Heartline API")

# CORS: allowed origins come from ALLOWED_ORIGINS (comma separated)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.on_event("startup")
async def on_startup():
    """
    1. Create tables and seed the default communities
    2. Preload the face detector so the first upload is not slow
    """
    await init_db()
    detector.load_models()
    logger.info("Heartline API started")

# REST routes and the live chat socket
app.include_router(api_router)
app.include_router(chat_socket_router)

admin = Admin(app, engine, authentication_backend=authentication_backend, title="Heartline Admin")
for view in ADMIN_VIEWS:
    admin.add_view(view)

@app.get("/")
async def root():
    """Health check."""
    return ok("Welcome to Heartline API")

@app.on_event("shutdown")
async def on_shutdown():
    await RedisManager.close()

# backend/heartline/api/v1/routers.py
from fastapi import APIRouter
from heartline.api.v1 import auth, profile, photo, swipe, images, community, chat

# Every user-facing route lives under /api/user
api_router = APIRouter(prefix="/api/user")

api_router.include_router(auth.router)
api_router.include_router(profile.router)
api_router.include_router(photo.router)
api_router.include_router(swipe.router)
api_router.include_router(images.router)
api_router.include_router(community.router)

# Chat goes last because of its catch-all /{receiver_id} history route
api_router.include_router(chat.router)

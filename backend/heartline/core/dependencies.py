"""
Provider clients injected into route handlers.

Each provider is built lazily from settings and cached for the process;
tests swap them out through app.dependency_overrides.
"""
from functools import lru_cache

from heartline.clients.email_sender import EmailSender
from heartline.clients.image_storage import ImageStorage
from heartline.clients.sms_sender import SmsSender
from heartline.core.config import settings
from heartline.db.database_redis import ChatNotifier
from heartline.vision import detector


@lru_cache
def get_email_sender() -> EmailSender:
    return EmailSender.from_settings(settings)


@lru_cache
def get_sms_sender() -> SmsSender:
    return SmsSender.from_settings(settings)


@lru_cache
def get_image_storage() -> ImageStorage:
    return ImageStorage.from_settings(settings)


@lru_cache
def get_notifier() -> ChatNotifier:
    return ChatNotifier()


def get_face_detector():
    return detector.detect_faces

# backend/heartline/admin_auth.py
from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request
from sqlalchemy import select
from heartline.db.database import AsyncSessionLocal
from heartline.db.models.user import User
from heartline.core.config import settings
from heartline.core.security import verify_password
from heartline.services.user_service import normalize_identifier

class AdminAuth(AuthenticationBackend):
    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = normalize_identifier(form.get("username"))
        password = form.get("password")
        if not username or not password:
            return False

        async with AsyncSessionLocal() as session:
            stmt = select(User).where(User.phone_or_email == username)
            result = await session.execute(stmt)
            user = result.scalar_one_or_none()

            # 1. User exists and password matches
            if not user or not verify_password(password, user.password):
                return False

            # 2. Only ADMIN accounts may enter
            if not user.is_admin:
                return False

            # 3. Session only keeps the user id
            request.session.update({"user_id": user.id})
            return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        user_id = request.session.get("user_id")
        if not user_id:
            return False

        # Re-check on every request so a demoted admin loses access
        async with AsyncSessionLocal() as session:
            user = await session.get(User, user_id)
            return bool(user and user.is_admin)

authentication_backend = AdminAuth(secret_key=settings.admin_secret_key)

import asyncio
import getpass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heartline.db.database import AsyncSessionLocal, init_db
from heartline.db.models.user import User
from heartline.core.security import get_password_hash
from heartline.services.user_service import normalize_identifier

async def create_superuser(session: AsyncSession, phone_or_email: str, password: str, name: str = "Admin") -> Optional[User]:
    """
    Create a verified ADMIN account. Returns None when the identifier is taken.
    """
    phone_or_email = normalize_identifier(phone_or_email)
    existing = await session.execute(select(User).where(User.phone_or_email == phone_or_email))
    if existing.scalar_one_or_none():
        return None

    admin_user = User(
        phone_or_email=phone_or_email,
        password=get_password_hash(password),
        name=name,
        date_of_birth=date(1970, 1, 1),
        gender="other",
        preferred_genders=[],
        role="ADMIN",
        is_verified=True,
    )
    session.add(admin_user)
    await session.commit()
    await session.refresh(admin_user)
    return admin_user

async def main():
    phone_or_email = input("Enter Admin Email or Phone: ")
    password = getpass.getpass("Enter Admin Password: ")
    name = input("Enter Admin Name (Optional): ") or "Admin"

    await init_db()
    async with AsyncSessionLocal() as session:
        print("Creating superuser...")
        user = await create_superuser(session, phone_or_email, password, name)
        if user is None:
            print(f"User {phone_or_email} already exists!")
            return
        print(f"Superuser '{user.phone_or_email}' created successfully!")

if __name__ == "__main__":
    asyncio.run(main())

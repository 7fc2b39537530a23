# backend/heartline/services/user_service.py
import asyncio
import logging
import secrets
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from heartline.core import otp
from heartline.core.config import settings
from heartline.core.responses import MISSING_FIELDS_MESSAGE, ok
from heartline.core.security import create_access_token, get_password_hash, verify_password
from heartline.core.validators import EMAIL, PHONE, PASSWORD_RULES, classify_identifier, is_valid_password
from heartline.db.models.token import RevokedToken
from heartline.db.models.user import User

logger = logging.getLogger(__name__)

DELIVERY_ERRORS = {
    EMAIL: "Error sending verification email.",
    PHONE: "Error sending OTP via SMS.",
}
CREATED_MESSAGES = {
    EMAIL: "User created successfully. Please check your email for the verification code.",
    PHONE: "User created successfully. Please check your phone for the OTP.",
}

def _clean(value):
    return value.strip() if isinstance(value, str) else value

def normalize_identifier(identifier: str) -> str:
    identifier = (identifier or "").strip()
    if classify_identifier(identifier) == EMAIL:
        return identifier.lower()
    return identifier

def serialize_user(user: User) -> dict:
    """Public view of a user. Never exposes the password hash or pending code."""
    return {
        "id": user.id,
        "name": user.name,
        "phoneOrEmail": user.phone_or_email,
        "dateOfBirth": user.date_of_birth,
        "gender": user.gender,
        "preferredGenders": list(user.preferred_genders or []),
        "bio": user.bio,
        "interests": list(user.interests or []),
        "location": user.location,
        "role": user.role,
        "isVerified": user.is_verified,
        "createdAt": user.created_at,
    }

async def get_user(db: AsyncSession, user_id: int):
    return await db.get(User, user_id)

async def get_user_by_identifier(db: AsyncSession, identifier: str):
    result = await db.execute(select(User).where(User.phone_or_email == identifier))
    return result.scalar_one_or_none()

async def deliver_code(channel: str, identifier: str, code: str, email_sender, sms_sender) -> None:
    """
    Send a one-time code over the channel picked for the identifier.
    Provider failures and timeouts become a 500 delivery error.
    """
    try:
        if channel == EMAIL:
            send = email_sender.send_verification_code(identifier, code)
        else:
            send = sms_sender.send_verification_code(identifier, code)
        await asyncio.wait_for(send, timeout=settings.delivery_timeout_seconds)
    except Exception:
        logger.exception("Delivery of verification code to %s over %s failed", identifier, channel)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=DELIVERY_ERRORS[channel])

async def register_user(db: AsyncSession, user_in, email_sender, sms_sender) -> dict:
    """
    Signup: validate, persist an unverified user with a fresh code, deliver the code.
    """
    name = _clean(user_in.name)
    identifier = _clean(user_in.phoneOrEmail)
    gender = _clean(user_in.gender)
    preferred = [g.strip() for g in (user_in.preferredGenders or []) if g and g.strip()]

    # 1. Required fields
    if not all([name, identifier, user_in.password, user_in.dateOfBirth, gender, preferred]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_FIELDS_MESSAGE)

    # 2. Password strength
    if not is_valid_password(user_in.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_RULES)

    # 3. Delivery channel from the identifier shape
    channel = classify_identifier(identifier)
    if channel is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid phone number or email format.")
    identifier = normalize_identifier(identifier)

    # 4. Persist; the unique constraint on phone_or_email decides conflicts
    code, expires_at = otp.issue_code()
    new_user = User(
        name=name,
        phone_or_email=identifier,
        date_of_birth=user_in.dateOfBirth,
        gender=gender,
        preferred_genders=preferred,
        password=get_password_hash(user_in.password),
        role="USER",
        verification_code=code,
        otp_expires=expires_at,
        is_verified=False,
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists.")
    await db.refresh(new_user)
    logger.info("Created user %s (%s signup)", new_user.id, channel)

    # 5. Deliver. A failure here leaves the account in place.
    await deliver_code(channel, identifier, code, email_sender, sms_sender)
    return ok(CREATED_MESSAGES[channel], userId=new_user.id)

async def verify_user(db: AsyncSession, verify_in) -> dict:
    """
    Check a one-time code and flip the account to verified.
    """
    identifier = normalize_identifier(verify_in.phoneOrEmail)
    code = (verify_in.code or "").strip()
    if not identifier or not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_FIELDS_MESSAGE)

    user = await get_user_by_identifier(db, identifier)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if user.is_verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Account already verified.")
    if otp.is_expired(user.otp_expires):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Verification code has expired.")
    if not user.verification_code or not secrets.compare_digest(code.encode(), user.verification_code.encode()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid verification code.")

    # Conditional update so two concurrent checks cannot both verify
    result = await db.execute(
        update(User)
        .where(User.id == user.id, User.is_verified.is_(False), User.verification_code == code)
        .values(is_verified=True, verification_code=None, otp_expires=None)
    )
    await db.commit()
    if result.rowcount != 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Account already verified.")

    await db.refresh(user)
    logger.info("User %s verified", user.id)
    return ok("Account verified successfully.", user=serialize_user(user))

async def resend_code(db: AsyncSession, resend_in, email_sender, sms_sender) -> dict:
    """
    Issue a fresh code for an existing, still unverified account.
    """
    identifier = normalize_identifier(resend_in.phoneOrEmail)
    if not identifier:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_FIELDS_MESSAGE)

    user = await get_user_by_identifier(db, identifier)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if user.is_verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Account already verified.")

    channel = classify_identifier(user.phone_or_email)
    if channel is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid phone number or email format.")

    user.verification_code, user.otp_expires = otp.issue_code()
    await db.commit()

    await deliver_code(channel, user.phone_or_email, user.verification_code, email_sender, sms_sender)
    return ok("A new verification code has been sent.")

async def authenticate_user(db: AsyncSession, user_in) -> dict:
    """
    Sign-in: credential check and token issue.
    """
    identifier = normalize_identifier(user_in.phoneOrEmail)
    if not identifier or not user_in.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_FIELDS_MESSAGE)

    user = await get_user_by_identifier(db, identifier)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if not verify_password(user_in.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")
    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your account before signing in.",
        )

    access_token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return ok(
        "Signed in successfully.",
        token=access_token,
        token_type="bearer",
        user=serialize_user(user),
    )

async def logout_user(db: AsyncSession, payload: dict) -> dict:
    """
    Revoke the presented access token until it would have expired anyway.
    """
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
    db.add(RevokedToken(jti=payload["jti"], user_id=int(payload["sub"]), expires_at=expires_at))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
    return ok("Logged out successfully.")

async def get_profile(db: AsyncSession, user_id: int) -> dict:
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return ok("Profile fetched successfully.", profile=serialize_user(user))

PROFILE_COLUMNS = {
    "name": "name",
    "dateOfBirth": "date_of_birth",
    "gender": "gender",
    "preferredGenders": "preferred_genders",
    "bio": "bio",
    "interests": "interests",
    "location": "location",
}
NULLABLE_PROFILE_FIELDS = {"bio", "location"}

async def update_profile(db: AsyncSession, user_id: int, profile_in) -> dict:
    fields = profile_in.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")

    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    for field, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        if isinstance(value, list):
            value = [item.strip() for item in value if item and item.strip()]
        if field == "preferredGenders" and not value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="preferredGenders cannot be empty.")
        if value in (None, "") and field not in NULLABLE_PROFILE_FIELDS:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be empty.")
        setattr(user, PROFILE_COLUMNS[field], value)

    await db.commit()
    await db.refresh(user)
    return ok("Profile updated successfully.", profile=serialize_user(user))

# backend/heartline/api/v1/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from heartline.db.database import get_db
from heartline.services import user_service
from heartline.schemas.user import SignupRequest, VerifyRequest, ResendCodeRequest, SigninRequest
from heartline.core.security import get_token_payload
from heartline.core.dependencies import get_email_sender, get_sms_sender

router = APIRouter(tags=["auth"])

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    user_in: SignupRequest,
    db: AsyncSession = Depends(get_db),
    email_sender=Depends(get_email_sender),
    sms_sender=Depends(get_sms_sender),
):
    """Create an unverified account and send its one-time code."""
    return await user_service.register_user(db, user_in, email_sender, sms_sender)

@router.post("/verify")
async def verify(verify_in: VerifyRequest, db: AsyncSession = Depends(get_db)):
    """Confirm the one-time code and mark the account verified."""
    return await user_service.verify_user(db, verify_in)

@router.post("/resendCode")
async def resend_code(
    resend_in: ResendCodeRequest,
    db: AsyncSession = Depends(get_db),
    email_sender=Depends(get_email_sender),
    sms_sender=Depends(get_sms_sender),
):
    """Send a fresh code to an account that is not verified yet."""
    return await user_service.resend_code(db, resend_in, email_sender, sms_sender)

@router.post("/signin")
async def signin(user_in: SigninRequest, db: AsyncSession = Depends(get_db)):
    return await user_service.authenticate_user(db, user_in)

@router.post("/logout")
async def logout(payload: dict = Depends(get_token_payload), db: AsyncSession = Depends(get_db)):
    return await user_service.logout_user(db, payload)

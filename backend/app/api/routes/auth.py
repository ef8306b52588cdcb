"""
Authentication routes.

- POST /auth/google  exchange a Google id_token for a session JWT
- POST /auth/logout  clear the session cookie
- GET  /auth/me      current user profile

Only the id_token is verified; Google access/refresh tokens are never stored.
The JWT is returned both as an HttpOnly cookie and in the response body.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Response, status
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import AppSettings, CurrentUser, DbSession, create_access_token
from app.config import Settings
from app.db.models import AuthIdentity, User
from app.schemas.auth import GoogleAuthRequest, TokenResponse
from app.schemas.user import UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


@dataclass(frozen=True)
class GoogleIdentity:
    subject: str
    email: str | None
    name: str


def verify_google_token(token: str, client_id: str) -> GoogleIdentity:
    """
    Verify signature, expiry, audience and issuer of a Google id_token.

    Unverified emails are dropped so they cannot be used to link accounts.
    """
    try:
        claims = google_id_token.verify_oauth2_token(token, google_requests.Request(), client_id)
        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise ValueError("Invalid issuer")
    except ValueError as e:
        logger.warning("Rejected Google id_token: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid Google id_token: {e}",
        ) from e

    email = claims.get("email")
    name = claims.get("name") or email or "Unknown User"
    if email and not claims.get("email_verified", False):
        email = None
    return GoogleIdentity(subject=claims["sub"], email=email, name=name)


async def upsert_google_user(db: AsyncSession, identity: GoogleIdentity) -> User:
    """Find the user behind a Google identity, creating or linking as needed."""
    result = await db.execute(
        select(AuthIdentity)
        .options(selectinload(AuthIdentity.user))
        .where(
            AuthIdentity.provider == "google",
            AuthIdentity.provider_user_id == identity.subject,
        )
    )
    auth_identity = result.scalar_one_or_none()

    if auth_identity is not None:
        auth_identity.last_login_at = datetime.now(timezone.utc)
        if identity.email:
            auth_identity.email = identity.email
        return auth_identity.user

    user = None
    if identity.email:
        result = await db.execute(select(User).where(User.email == identity.email.lower()))
        user = result.scalar_one_or_none()

    if user is None:
        user = User(email=identity.email.lower() if identity.email else None, name=identity.name)
        db.add(user)
        await db.flush()
        logger.info("Created user %s", user.id)

    db.add(
        AuthIdentity(
            user_id=user.id,
            provider="google",
            provider_user_id=identity.subject,
            email=identity.email,
        )
    )
    return user


def _cookie_options(app_settings: Settings) -> dict:
    # Cross-domain deployments need samesite=none, which requires secure
    return {
        "httponly": True,
        "secure": app_settings.cookie_cross_domain or app_settings.environment != "development",
        "samesite": "none" if app_settings.cookie_cross_domain else "lax",
    }


@router.post("/google", response_model=TokenResponse)
async def google_login(
    request: GoogleAuthRequest,
    response: Response,
    db: DbSession,
    app_settings: AppSettings,
) -> TokenResponse:
    """Exchange a Google id_token for a session JWT."""
    identity = verify_google_token(request.id_token, app_settings.google_client_id)
    user = await upsert_google_user(db, identity)
    await db.commit()

    access_token = create_access_token(user.id)
    expires_in = app_settings.jwt_expire_minutes * 60
    response.set_cookie(
        key="access_token",
        value=access_token,
        max_age=expires_in,
        **_cookie_options(app_settings),
    )
    return TokenResponse(access_token=access_token, expires_in=expires_in)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response, app_settings: AppSettings) -> None:
    """
    Clear the session cookie.

    A JWT the client kept elsewhere stays valid until it expires.
    """
    response.delete_cookie(key="access_token", **_cookie_options(app_settings))


@router.get("/me", response_model=UserRead)
async def get_me(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)

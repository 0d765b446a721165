"""
Identity guard — bearer JWT verification with a revocation denylist.

Tokens are HS256 JWTs carrying the user id (`sub`) and a token identifier
(`jti`). Logging out puts the `jti` on the denylist; every authentication
checks it. The resolved user id is handed to route handlers explicitly
through the `current_user_id` dependency.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.config import settings
from hottake.database import get_db
from hottake.errors import Unauthenticated
from hottake.models import RevokedToken, User, utcnow

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def issue_token(user_id: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.jwt_ttl_days)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise Unauthenticated("Token has expired") from exc
    except JWTError as exc:
        raise Unauthenticated("Invalid token") from exc
    if not claims.get("sub") or not claims.get("jti"):
        raise Unauthenticated("Token is missing required claims")
    return claims


class TokenDenylist:
    """Revoked token identifiers, persisted in the revoked_tokens table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def revoke(self, jti: str, expires_at: Optional[datetime] = None) -> None:
        if await self.session.get(RevokedToken, jti) is None:
            self.session.add(RevokedToken(jti=jti, expires_at=expires_at))
            await self.session.flush()

    async def is_revoked(self, jti: str) -> bool:
        rows = await self.session.execute(select(RevokedToken.jti).where(RevokedToken.jti == jti))
        return rows.scalar_one_or_none() is not None

    async def prune(self, now: Optional[datetime] = None) -> int:
        """Forget revocations for tokens that have expired anyway."""
        result = await self.session.execute(
            delete(RevokedToken).where(RevokedToken.expires_at < (now or utcnow()))
        )
        return result.rowcount


class IdentityGuard:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.denylist = TokenDenylist(session)

    async def verify(self, credential: Optional[str]) -> dict:
        """Return the claims of a valid, unrevoked token."""
        if not credential:
            raise Unauthenticated("Missing bearer token")
        claims = decode_token(credential)
        if await self.denylist.is_revoked(claims["jti"]):
            raise Unauthenticated("Token has been revoked")
        if await self.session.get(User, claims["sub"]) is None:
            raise Unauthenticated("Unknown user")
        return claims

    async def authenticate(self, credential: Optional[str]) -> str:
        return (await self.verify(credential))["sub"]

    async def revoke(self, credential: str) -> None:
        claims = await self.verify(credential)
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc).replace(tzinfo=None)
        await self.denylist.revoke(claims["jti"], expires_at)
        pruned = await self.denylist.prune()
        logger.info(
            "Revoked token %s for user %s (pruned %d expired revocations)",
            claims["jti"], claims["sub"], pruned,
        )


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


async def current_user_id(
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db),
) -> str:
    """FastAPI dependency — the authenticated user's id, or 401."""
    return await IdentityGuard(db).authenticate(token)

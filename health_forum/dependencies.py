from functools import lru_cache
from datetime import timedelta

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from health_forum.config import settings
from health_forum.database import get_db
from health_forum.errors import InvalidTokenError
from health_forum.security import CredentialManager, TokenSettings
from health_forum.store import ForumStore, SqlAlchemyStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(db: AsyncSession = Depends(get_db)) -> ForumStore:
    """Wrap the request-scoped session in the persistence port."""
    return SqlAlchemyStore(db)


@lru_cache
def get_credentials() -> CredentialManager:
    """
    Build the process-wide ``CredentialManager`` from ``settings``.

    This is the only place the token secret, issuer and audience are read
    from configuration; everything downstream receives them explicitly.
    """
    token_settings = TokenSettings(
        secret_key=settings.JWT_SECRET_KEY,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        lifetime=timedelta(days=settings.JWT_EXPIRE_DAYS),
    )
    return CredentialManager(token_settings, bcrypt_rounds=settings.BCRYPT_ROUNDS)


def get_principal_id(
    bearer: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    credentials: CredentialManager = Depends(get_credentials),
) -> str | None:
    """
    Return the authenticated user id, or None when no token was sent.

    A token that is present but fails verification raises
    ``InvalidTokenError`` rather than being treated as anonymous.
    """
    if bearer is None:
        return None
    claims = credentials.decode_token(bearer.credentials)
    subject = claims.get("sub")
    if not subject:
        raise InvalidTokenError()
    return subject

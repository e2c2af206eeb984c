"""
Credential handling: bcrypt password hashing and JWT issuance.

``CredentialManager`` receives everything it needs at construction
(``TokenSettings`` and the bcrypt cost factor) and never reads the
global ``settings`` object, so tests and scripts can build one with
their own secret.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from health_forum.errors import InvalidTokenError

TOKEN_LIFETIME = timedelta(days=7)

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class TokenSettings:
    secret_key: str
    issuer: str
    audience: str
    lifetime: timedelta = TOKEN_LIFETIME
    algorithm: str = "HS256"


class CredentialManager:
    """Hash/verify passwords and issue/decode signed access tokens."""

    def __init__(self, token_settings: TokenSettings, bcrypt_rounds: int = 12) -> None:
        self._token = token_settings
        self._rounds = bcrypt_rounds

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        """
        Return a salted bcrypt hash of *password*.

        Raises ``ValueError`` for passwords bcrypt cannot hash (longer
        than 72 bytes once UTF-8 encoded).
        """
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError("password exceeds 72 bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash.
            return False

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, user_id: str, email: str, now: datetime | None = None) -> str:
        """
        Return a signed JWT for *user_id*.

        Claims: ``sub`` (user id), ``email``, ``iss``, ``aud``, ``iat`` and
        ``exp`` (``iat`` plus the configured lifetime, seven days by default).
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "iss": self._token.issuer,
            "aud": self._token.audience,
            "iat": issued_at,
            "exp": issued_at + self._token.lifetime,
        }
        return jwt.encode(payload, self._token.secret_key, algorithm=self._token.algorithm)

    def decode_token(self, token: str) -> dict:
        """
        Verify *token* and return its claims.

        Signature, expiry, issuer and audience are all checked; any
        failure raises ``InvalidTokenError``.
        """
        try:
            return jwt.decode(
                token,
                self._token.secret_key,
                algorithms=[self._token.algorithm],
                audience=self._token.audience,
                issuer=self._token.issuer,
                options={"require": ["exp", "iat", "sub", "iss", "aud"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc

"""
User service: registration, login and profile lookup for the User aggregate.

Email uniqueness is checked twice: first with a query against the
``email`` index (the common case, no write attempted), then by the
storage-level unique constraint through ``store.insert``, which catches
two registrations racing past the query.  Both paths surface as
``DuplicateEmailError``.

The password hash never leaves this module; serialised users omit it.
"""
import logging
import uuid

from health_forum.errors import (
    DuplicateEmailError,
    DuplicateKeyError,
    InvalidArgumentError,
    InvalidCredentialsError,
)
from health_forum.models import User
from health_forum.security import CredentialManager
from health_forum.store import ForumStore

logger = logging.getLogger(__name__)

EMAIL_INDEX = "email"


def _user_to_dict(user: User) -> dict:
    """Serialise a User without its password hash."""
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "bio": user.bio,
    }


async def register(
    store: ForumStore,
    credentials: CredentialManager,
    email: str,
    password: str,
    username: str,
) -> dict:
    """
    Create a new user with a bcrypt-hashed password and an empty bio.

    Raises ``DuplicateEmailError`` when *email* is already registered.
    """
    logger.info("Registering user email=%s username=%s", email, username)

    existing = await store.query_by_index(User, EMAIL_INDEX, email)
    if existing:
        logger.warning("Registration rejected, email already exists: %s", email)
        raise DuplicateEmailError(email)

    try:
        password_hash = credentials.hash_password(password)
    except ValueError as exc:
        raise InvalidArgumentError("Password is too long.") from exc

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        username=username,
        password_hash=password_hash,
        bio="",
    )
    try:
        await store.insert(user)
    except DuplicateKeyError as exc:
        logger.warning("Registration lost a race on email=%s", email)
        raise DuplicateEmailError(email) from exc

    logger.info("User registered, user_id=%s", user.id)
    return _user_to_dict(user)


async def login(
    store: ForumStore, credentials: CredentialManager, email: str, password: str
) -> str:
    """
    Verify *email* / *password* and return a signed access token.

    An unknown email and a wrong password raise the same
    ``InvalidCredentialsError`` so callers cannot tell them apart.
    """
    users = await store.query_by_index(User, EMAIL_INDEX, email)
    if not users:
        logger.warning("Login failed: unknown email %s", email)
        raise InvalidCredentialsError()

    user = users[0]
    if not credentials.verify_password(password, user.password_hash):
        logger.warning("Login failed: wrong password for email %s", email)
        raise InvalidCredentialsError()

    token = credentials.issue_token(user.id, user.email)
    logger.info("Login successful, user_id=%s", user.id)
    return token


async def get_user_by_id(store: ForumStore, user_id: str) -> dict | None:
    user = await store.load(User, id=user_id)
    return _user_to_dict(user) if user is not None else None

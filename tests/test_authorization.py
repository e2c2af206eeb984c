import pytest

from health_forum.authorization import authorize, require_principal
from health_forum.errors import ForbiddenError, NotAuthenticatedError, ResourceNotFoundError

POST = {"id": "p1", "author_id": "alice"}


def test_owner_is_allowed():
    assert authorize("alice", POST, "Post") is POST


def test_missing_principal_checked_first():
    with pytest.raises(NotAuthenticatedError):
        authorize(None, None, "Post")
    with pytest.raises(NotAuthenticatedError):
        authorize("", POST, "Post")


def test_not_found_before_forbidden():
    with pytest.raises(ResourceNotFoundError):
        authorize("bob", None, "Post")


def test_non_owner_forbidden():
    with pytest.raises(ForbiddenError):
        authorize("bob", POST, "Post")


def test_custom_owner_field():
    user = {"id": "alice", "email": "a@x.com"}
    assert authorize("alice", user, "User", owner_field="id") is user
    with pytest.raises(ForbiddenError):
        authorize("bob", user, "User", owner_field="id")


def test_require_principal():
    assert require_principal("alice") == "alice"
    with pytest.raises(NotAuthenticatedError):
        require_principal(None)

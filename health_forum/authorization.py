"""
Authorization guard shared by every entry point.

Decisions run in a fixed order: no caller identity, then resource
absent, then caller is not the owner.  An authenticated caller can
therefore tell "exists but not mine" (403) from "does not exist" (404).
"""
from health_forum.errors import ForbiddenError, NotAuthenticatedError, ResourceNotFoundError


def require_principal(principal_id: str | None) -> str:
    if not principal_id:
        raise NotAuthenticatedError()
    return principal_id


def authorize(
    principal_id: str | None,
    resource: dict | None,
    resource_type: str,
    owner_field: str = "author_id",
) -> dict:
    """
    Return *resource* if *principal_id* owns it.

    Raises ``NotAuthenticatedError``, ``ResourceNotFoundError`` or
    ``ForbiddenError``, in that order of precedence.
    """
    require_principal(principal_id)
    if resource is None:
        raise ResourceNotFoundError(resource_type)
    if resource.get(owner_field) != principal_id:
        raise ForbiddenError(f"You do not have access to this {resource_type.lower()}.")
    return resource

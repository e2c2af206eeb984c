from fastapi import APIRouter, Depends

from health_forum.authorization import authorize, require_principal
from health_forum.dependencies import get_credentials, get_principal_id, get_store
from health_forum.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from health_forum.security import CredentialManager
from health_forum.services import user_service
from health_forum.store import ForumStore

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register", status_code=201, response_model=UserResponse)
async def register(
    data: RegisterRequest,
    store: ForumStore = Depends(get_store),
    credentials: CredentialManager = Depends(get_credentials),
):
    return await user_service.register(store, credentials, data.email, data.password, data.username)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    store: ForumStore = Depends(get_store),
    credentials: CredentialManager = Depends(get_credentials),
):
    token = await user_service.login(store, credentials, data.email, data.password)
    return {"token": token}


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    require_principal(principal_id)
    user = await user_service.get_user_by_id(store, user_id)
    return authorize(principal_id, user, "User", owner_field="id")

from datetime import datetime

from pydantic import BaseModel, Field


# --- User ---

class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    username: str = Field(min_length=1, max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    token: str


class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    bio: str = ""


# --- Post ---

class PostCreate(BaseModel):
    title: str = Field(max_length=300)
    content: str
    tags: list[str] | None = None


class PostUpdate(BaseModel):
    # Omitted (or null) fields are left unchanged; "" still overwrites.
    title: str | None = Field(None, max_length=300)
    content: str | None = None


class PostResponse(BaseModel):
    id: str
    title: str
    content: str
    author_id: str
    created_at: datetime
    tags: list[str] = []
    likes: int
    dislikes: int


# --- Comment ---

class CommentCreate(BaseModel):
    content: str


class CommentResponse(BaseModel):
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: datetime

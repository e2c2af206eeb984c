from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from health_forum import __version__
from health_forum.config import settings
from health_forum.database import init_models
from health_forum.error_handlers import register_error_handlers
from health_forum.logging_config import setup_logging
from health_forum.routers import comments, posts, users


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.LOG_LEVEL)
    await init_models()
    yield


app = FastAPI(
    title="Health Forum API",
    description="Forum backend: users, posts, comments and reactions",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(comments.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": __version__}

from contextlib import asynccontextmanager

from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware

from admin import router as admin_router
from ai import router as ai_router
from auth import router as auth_router
from cli import router as cli_router
from content import router as content_router
from core import config, db
from core.logging import configure_logging
from core.utils import detect_platform
from guide import router as guide_router
from payments import router as payments_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Allow the web frontend to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(guide_router.router, tags=["guide"])
app.include_router(payments_router.router, tags=["payments"])
app.include_router(admin_router.router, tags=["admin"])
app.include_router(ai_router.router, tags=["ai"])
app.include_router(content_router.router, tags=["content"])
app.include_router(cli_router.router, tags=["cli"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "shipkit api"}


@app.get("/platform")
def platform(
    user_agent: str | None = Header(default=None),
    sec_ch_ua_platform: str | None = Header(default=None),
) -> dict:
    return detect_platform(user_agent, sec_ch_ua_platform)

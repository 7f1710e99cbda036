import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legalhub.config import settings
from legalhub.middleware.exceptions import register_exception_handlers
from legalhub.routers import health, onboarding, reference, review
from legalhub.utils.cache import close_redis

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("legalhub")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("LegalHub starting (%s)", settings.environment)
    yield
    await close_redis()
    logger.info("LegalHub stopped")


app = FastAPI(
    title="LegalHub",
    description="Legal services marketplace: lawyer onboarding and verification",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(onboarding.router, prefix="/api/lawyer/onboarding", tags=["onboarding"])
app.include_router(review.router, prefix="/api/admin/lawyers", tags=["review"])
app.include_router(reference.router, prefix="/api/reference", tags=["reference"])

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from guestlist.core.config import settings
import guestlist.models  # noqa: F401  # force model registration

from guestlist.api.v1.auth import router as auth_router
from guestlist.api.v1.guestlist import router as guestlist_router
from guestlist.api.v1.events import router as events_router
from guestlist.api.v1.promoters import router as promoters_router
from guestlist.api.v1.guests import router as guests_router
from guestlist.api.v1.commissions import router as commissions_router
from guestlist.api.v1.promoter_portal import router as promoter_portal_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    app = FastAPI(title="Guestlist API")

    # CORS (local frontend + public site)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            settings.PUBLIC_BASE_URL.rstrip("/"),
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "guestlist"}

    # Public registration flow
    app.include_router(guestlist_router, prefix="/api/v1")

    # Authenticated
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(events_router, prefix="/api/v1")
    app.include_router(promoters_router, prefix="/api/v1")
    app.include_router(guests_router, prefix="/api/v1")
    app.include_router(commissions_router, prefix="/api/v1")
    app.include_router(promoter_portal_router, prefix="/api/v1")

    logger.info("Guestlist API ready (environment=%s)", settings.ENVIRONMENT)
    return app


app = create_application()

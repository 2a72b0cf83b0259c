import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.auth import router as auth_router
from portal.core import db, settings
from portal.core.google import GoogleClient, ServiceAccountTokens
from portal.reports import router as reports_router
from portal.sections import router as sections_router
from portal.sheets import repository as sheets_repository
from portal.sheets import router as sheets_router
from portal.sheets.cache import TableCache
from portal.sheets.fetcher import CachedFetcher
from portal.sheets.resolver import ConfigResolver
from portal.uploads import router as uploads_router
from portal.users import router as users_router

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    # One DB pool and one sheet cache per process.
    await db.init_pool()
    cache_ttl = settings.sheet_cache_ttl_seconds()
    google = GoogleClient(ServiceAccountTokens(settings.service_account_info()))
    app.state.google_client = google
    app.state.sheet_fetcher = CachedFetcher(
        resolver=ConfigResolver(
            lookup=sheets_repository.get_active_config,
            static_configs=settings.static_sheet_configs(),
        ),
        reader=google.get_sheet_values,
        cache=TableCache(ttl_seconds=cache_ttl),
    )
    logger.info("portal_started cache_ttl_s=%s", cache_ttl)
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Allow the frontend origins to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(users_router.router, tags=["users"])
app.include_router(sections_router.router, tags=["sections"])
app.include_router(uploads_router.router, tags=["uploads"])
app.include_router(reports_router.router, tags=["reports"])
app.include_router(sheets_router.router, tags=["sheet-config"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "reporting portal api"}

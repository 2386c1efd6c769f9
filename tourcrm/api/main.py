"""
FastAPI app assembly: logging, middleware and router wiring.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from tourcrm.db.database import SessionLocal, init_sqlite_schema
from tourcrm.api.auth import bootstrap_admin, router as auth_router
from tourcrm.api.bitrix import router as bitrix_router, sync_logs_router
from tourcrm.api.contacts import router as contacts_router
from tourcrm.api.deals import router as deals_router
from tourcrm.api.dictionaries import router as dictionaries_router, types_router as dictionary_types_router
from tourcrm.api.events import router as events_router
from tourcrm.api.expenses import router as expenses_router, base_router as base_expenses_router
from tourcrm.api.forms import router as forms_router
from tourcrm.api.groups import router as groups_router
from tourcrm.api.leads import router as leads_router
from tourcrm.api.notifications import router as notifications_router
from tourcrm.api.public import router as public_router
from tourcrm.api.tourists import router as tourists_router
from tourcrm.api.users import router as users_router
from tourcrm.api.visits import router as visits_router
from tourcrm.utils.feature_flags import get_feature_flags

# Database schema is managed by Alembic migrations (SQLite demos create tables directly).

DEFAULT_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
]


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or DEFAULT_ORIGINS


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_sqlite_schema()
    db = SessionLocal()
    try:
        bootstrap_admin(db)
    except Exception:
        db.rollback()
        logger.exception("Admin bootstrap failed")
    finally:
        db.close()
    logger.info("Feature flags: %s", dict(get_feature_flags()))
    yield


app = FastAPI(
    title="Tour CRM Service",
    description="API for leads, tours, bookings and itineraries of a tour operator.",
    version="1.0.0",
    lifespan=lifespan,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(events_router)
app.include_router(expenses_router)
app.include_router(base_expenses_router)
app.include_router(contacts_router)
app.include_router(deals_router)
app.include_router(visits_router)
app.include_router(groups_router)
app.include_router(leads_router)
app.include_router(tourists_router)
app.include_router(forms_router)
app.include_router(public_router)
app.include_router(dictionaries_router)
app.include_router(dictionary_types_router)
app.include_router(notifications_router)
app.include_router(bitrix_router)
app.include_router(sync_logs_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "tourcrm"}

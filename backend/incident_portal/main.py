import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from incident_portal.core import database
from incident_portal.core.config import settings
from incident_portal.core.errors import register_error_handlers
from incident_portal.routers import auth, categories, incidents, profiles

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Incident Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(profiles.router, prefix=settings.API_PREFIX)
app.include_router(categories.router, prefix=settings.API_PREFIX)
app.include_router(incidents.router, prefix=settings.API_PREFIX)


@app.on_event("startup")
async def startup():
    logger.info("Application startup: initializing database")
    database.init_engine(settings.DATABASE_URL)
    await database.create_all()
    await database.seed_categories()


@app.on_event("shutdown")
async def shutdown():
    await database.dispose_engine()
    logger.info("Application shutdown complete")


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("incident_portal.main:app", host="0.0.0.0", port=settings.API_PORT)

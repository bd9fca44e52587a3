import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

import database
from auth import ensure_default_admin
from config import get_settings
from errors import register_exception_handlers
from logging_config import configure_logging
from middleware import RequestIDMiddleware, StructuredLoggingMiddleware
from notifications import get_dispatcher
from routers import (
    achievements,
    auth,
    contact,
    dashboard,
    newsletter,
    portfolio,
    properties,
    schedule_visits,
    share,
    team,
)

logger = logging.getLogger(__name__)

API_NAME = "AMIZERO Real Estate API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    db = database.connect()
    database.ensure_indexes(db)
    ensure_default_admin(db)

    dispatcher = get_dispatcher()
    await dispatcher.start()
    logger.info("%s started (%s)", API_NAME, settings.app_env)
    try:
        yield
    finally:
        await dispatcher.stop()
        database.close()
        logger.info("%s stopped", API_NAME)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=API_NAME, version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredLoggingMiddleware)
    # added last so it wraps everything and the request id is set for the access log
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    for module in (auth, properties, team, portfolio, schedule_visits, contact, newsletter, achievements, dashboard):
        app.include_router(module.router, prefix="/api")
    for module in (properties, team, portfolio):
        app.include_router(module.public_router, prefix="/api")
    app.include_router(share.router)

    @app.get("/")
    def root():
        return {"name": API_NAME, "status": "ok"}

    @app.get("/test")
    def test_database():
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_url": "✅ Set" if settings.mongodb_uri else "❌ Not Set",
            "database_name": "❌ Not Set",
            "connection_status": "Not Connected",
            "collections": [],
        }
        db = database.db
        if db is not None:
            try:
                response["collections"] = db.list_collection_names()[:10]
                response["database"] = "✅ Connected & Working"
                response["database_name"] = db.name
                response["connection_status"] = "Connected"
            except PyMongoError as e:
                logger.warning("Database diagnostics failed: %s", e)
                response["database"] = f"❌ Error: {str(e)[:120]}"
        return response

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)

from fastapi import FastAPI

from app.config import Settings, get_settings
from app.core.logging import setup_logging
from app.database import Base, engine
from app.models import import_all_models
from app.routers import health_router, inventory_router, lots_router, sales_router

setup_logging()
settings: Settings = get_settings()

import_all_models()
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME)

app.include_router(health_router)
app.include_router(sales_router)
app.include_router(inventory_router)
app.include_router(lots_router)


__all__ = ["app"]

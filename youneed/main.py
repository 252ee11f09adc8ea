# youneed/main.py

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .db import init_db
from .errors import register_exception_handlers
from .routers import (
    admin_routes,
    auth_routes,
    notifications_routes,
    orders_routes,
    providers_routes,
    users_routes,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    init_db()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="YouNeed API", version="1.0.0", lifespan=lifespan)
register_exception_handlers(app)

for module in (
    auth_routes,
    users_routes,
    orders_routes,
    providers_routes,
    notifications_routes,
    admin_routes,
):
    app.include_router(module.router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "ok"}

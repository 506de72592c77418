# barberqueue/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .db import create_db_and_tables
from .errors import BarberQueueError
from .routers import (
    auth_routes,
    users_routes,
    shops_routes,
    bookings_routes,
    reviews_routes,
    favorites_routes,
    registrations_routes,
)

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("barberqueue started")
    yield


app = FastAPI(title="Barber Queue", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BarberQueueError)
async def barberqueue_error_handler(request: Request, exc: BarberQueueError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(shops_routes.router)
app.include_router(bookings_routes.router)
app.include_router(reviews_routes.router)
app.include_router(favorites_routes.router)
app.include_router(registrations_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}

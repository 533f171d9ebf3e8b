# backend/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()

from config import settings
from core.errors import PosError
from core.rate_limit import RateLimitStore
from database import init_db
from utils.logging_config import setup_logging

from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.categories import router as categories_router
from routes.products import router as products_router
from routes.stock import router as stock_router
from routes.cart import router as cart_router
from routes.held_orders import router as held_orders_router
from routes.orders import router as orders_router
from routes.payments import router as payments_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging("pos-api", settings.LOG_LEVEL)
    init_db()

    app.state.rate_limiter = RateLimitStore(
        max_requests=settings.LOGIN_RATE_LIMIT,
        window_seconds=settings.LOGIN_RATE_WINDOW_SECONDS,
        max_entries=settings.RATE_LIMIT_MAX_ENTRIES,
        sweep_interval=settings.RATE_LIMIT_SWEEP_SECONDS,
    )
    app.state.rate_limiter.start()
    logger.info("POS API started")
    try:
        yield
    finally:
        await app.state.rate_limiter.stop()
        logger.info("POS API stopped")


app = FastAPI(title="POS API", version="1.0.0", lifespan=lifespan)

origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain errors carry their own HTTP status
@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message,
                   extra={"status_code": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, **exc.details()})


app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(categories_router)
app.include_router(products_router)
app.include_router(stock_router)
app.include_router(cart_router)
app.include_router(held_orders_router)
app.include_router(orders_router)
app.include_router(payments_router)


@app.get("/")
def read_root():
    return {"message": "POS API is running"}

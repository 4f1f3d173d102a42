"""
PharmaTrust Backend: pharmacy counter and back-office API.

ARCHITECTURE:
- React SPA: staff login, catalogue, customers, point of sale
- FastAPI Backend: validation, role gating, persistence
- SQL database via SQLAlchemy: source of truth for stock and sales
- Local disk: uploaded profile, medicine and prescription images

CONSISTENCY MODEL:
- A sale, its stock decrements and the customer's loyalty accrual commit
  together in one transaction or not at all
- Stock is never decremented below zero (guarded update + CHECK constraint)
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.staticfiles import StaticFiles

from pharmatrust.api.response import register_exception_handlers
from pharmatrust.api.routes import auth, customers, medicines, sales, suppliers
from pharmatrust.core.config import settings
from pharmatrust.core.rate_limiter import RateLimitMiddleware
from pharmatrust.db.init_db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    1. Initialize database tables
    2. Bootstrap the first admin account if there are no users
    """
    logger.info("Initializing database...")
    init_db()
    logger.info(f"Database ready ({settings.ENVIRONMENT})")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="PharmaTrust API",
    description="Medicines, suppliers, customers and point-of-sale for a retail pharmacy.",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# SECURITY: Trust only specific hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,  # Cache preflight for 10 minutes
    expose_headers=["Content-Type", "Content-Disposition"],
)

# SECURITY: Rate limiting to prevent brute force and DoS attacks
app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"  # Prevent MIME sniffing
    response.headers["X-Frame-Options"] = "DENY"  # Prevent clickjacking
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.SECURE_COOKIES:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(medicines.router, prefix="/api/medicines", tags=["medicines"])
app.include_router(suppliers.router, prefix="/api/suppliers", tags=["suppliers"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(sales.router, prefix="/api/sales", tags=["sales"])

Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_URL, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
def root():
    return {
        "success": True,
        "message": "Welcome to PharmaTrust API",
        "data": {
            "version": app.version,
            "endpoints": {
                "auth": "/api/auth",
                "medicines": "/api/medicines",
                "suppliers": "/api/suppliers",
                "customers": "/api/customers",
                "sales": "/api/sales",
            },
        },
    }


@app.get("/health")
def health():
    return {"status": "ok"}

from fastapi import FastAPI
from yababoss.core.config import get_settings
from yababoss.core.lifespan import lifespan
from yababoss.api.v1.routers.health import router as health_router
from yababoss.api.v1.routers.sync import router as sync_router
from yababoss.api.v1.routers.products import router as products_router
from yababoss.api.v1.routers.recommendations import router as recommendations_router
from yababoss.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging, os

settings = get_settings()
configure_logging(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    log_file=settings.LOG_FILE or None,
)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS depuis l'env (CSV). Exemple:
# ALLOWED_ORIGINS="https://yababoss.com,https://admin.yababoss.com"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["http://localhost:8080", "http://localhost:5173"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(sync_router)              # supplier catalog -> products_cache
app.include_router(products_router)          # enriched view + admin overlay
app.include_router(recommendations_router)   # similar / diverse

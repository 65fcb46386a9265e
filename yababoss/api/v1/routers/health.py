# yababoss/api/v1/routers/health.py
import time
import subprocess
from fastapi import APIRouter
from yababoss.core.config import get_settings
from yababoss.db import mongo
from yababoss.db import redis as redis_db

router = APIRouter()
START_TIME = time.time()


def _git_sha(short: bool = True) -> str:
    try:
        cmd = ["git", "rev-parse", "--short" if short else "HEAD"]
        return subprocess.check_output(cmd, stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


@router.get("/health")
async def health():
    """
    Health check tolérant :
    - ping Mongo via Motor + taille du cache produits
    - Redis 'skipped' si non configuré
    - API fournisseur: seulement la présence de l'URL (pas d'appel sortant)
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA if settings.GIT_SHA != "unknown" else _git_sha(),
        "uptime_seconds": int(time.time() - START_TIME),
    }

    # --- Mongo ---
    try:
        db = mongo.get_db()
        await db.command("ping")
        checks["mongodb"] = "ok"
        checks["products_cached"] = await db[settings.products_cache_collection].count_documents({})
    except Exception as e:
        checks["mongodb"] = f"error: {e}"

    # --- Redis (tolérant) ---
    checks["redis"] = await redis_db.status()

    checks["catalog_api_configured"] = bool(settings.CATALOG_API_BASE_URL)

    def _is_ok(v):
        return v in ("ok", "skipped") or v is True

    health_keys = ("mongodb", "redis", "catalog_api_configured")
    status = "ok" if all(_is_ok(checks.get(k)) for k in health_keys) else "error"

    return {"status": status, "checks": checks, "timestamp": int(time.time())}

# yababoss/core/lifespan.py
from contextlib import asynccontextmanager
from fastapi import FastAPI
from yababoss.db import mongo, redis as r
from yababoss.core.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo obligatoire dès que l'URI est configurée (cache produits + extensions)
    if settings.MONGO_URI:
        try:
            await mongo.connect()
            print("✅ Mongo connected")
        except Exception as e:
            print(f"❌ Mongo connection failed: {e}")
            raise
    else:
        print("⚠️ No MONGO_URI provided, skipping Mongo connection")

    # Redis optionnel (cache vue enrichie, verrou de synchro)
    await r.connect(settings.REDIS_URL)

    if not settings.CATALOG_API_BASE_URL:
        print("⚠️ No CATALOG_API_BASE_URL provided, /sync-products will answer 503")

    yield

    # --- Shutdown ---
    await r.disconnect()
    if settings.MONGO_URI:
        await mongo.disconnect()
        print("🔌 Mongo disconnected")

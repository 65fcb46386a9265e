from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "YaBaBossCatalog"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"
    LOG_FILE: str = ""  # e.g. logs/yababoss.log; empty = console only

    # Mongo (empty URI = pas de connexion au démarrage)
    MONGO_URI: str = ""
    MONGO_DB: str = "yababoss"
    products_cache_collection: str = "products_cache"
    product_extensions_collection: str = "product_extensions"

    # Redis (optionnel)
    REDIS_URL: str = ""
    redis_timeout_s: float = 2.0

    # Supplier catalog API (Cowema)
    CATALOG_API_BASE_URL: str = ""
    CATALOG_API_TOKEN: str = ""
    catalog_timeout_s: float = 30.0

    # Politeness throttles towards the supplier API (requests per second)
    fetch_rate_per_s: float = 10.0     # ~100ms between pages for fetch_all_products
    sync_rate_per_s: float = 5.0       # ~200ms between pages for the progressive sync

    # Placeholder featured draw at transform time (not authoritative)
    featured_ratio: float = 0.3

    # Cache / locks
    enriched_cache_ttl: int = 5 * 60        # 5 minutes
    enriched_cache_key: str = "enriched:products:all"
    sync_lock_key: str = "sync:products"
    sync_lock_ttl: int = 30 * 60            # a full sync of dozens of pages

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )

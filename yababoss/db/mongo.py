# yababoss/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from yababoss.core.config import get_settings
import certifi

settings = get_settings()

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    assert _client is not None, "Mongo client not initialized"
    return _client


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    external_api_id is the only join key with the supplier: the unique index
    turns a racing double insert into an upsert conflict instead of a duplicate.
    """
    cache = db[settings.products_cache_collection]
    await cache.create_index("external_api_id", unique=True)
    await cache.create_index("id")
    await db[settings.product_extensions_collection].create_index("product_id", unique=True)


async def connect():
    """
    Create Motor client with explicit CA bundle.
    Do not crash the app if the initial ping fails: keep a lazy client so
    requests (and the next sync) can retry once Atlas/network is OK.
    """
    global _client, _db

    def _new_client() -> AsyncIOMotorClient:
        tls_opts = {}
        if settings.MONGO_URI.startswith("mongodb+srv"):
            # SRV implies TLS; explicit CA bundle is critical in slim containers
            tls_opts = {"tls": True, "tlsCAFile": certifi.where()}
        return AsyncIOMotorClient(
            settings.MONGO_URI,
            uuidRepresentation="standard",
            serverSelectionTimeoutMS=6000,
            connectTimeoutMS=6000,
            **tls_opts,
        )

    try:
        _client = _new_client()
        _db = _client[settings.MONGO_DB]
        await _client.admin.command("ping")
        await ensure_indexes(_db)
        print("Mongo connected (ping ok, indexes ok)")
    except Exception as e:
        print(f"[WARN] Mongo ping at startup failed: {e}")
        try:
            _client = _new_client()
            _db = _client[settings.MONGO_DB]
            print("[WARN] Mongo will attempt lazy connection on first query")
        except Exception as e2:
            _client = None
            _db = None
            print(f"[ERROR] Mongo client init failed: {e2}")


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None

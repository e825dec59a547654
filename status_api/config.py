import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    HOST: str = os.getenv("STATUS_API_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 11080))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").lower()

    CACHE_TTL_MS: int = 20000
    CACHE_MAX_ENTRIES: int = 100
    CACHE_EVICT_COUNT: int = 50
    CACHE_PURGE_INTERVAL_S: int = 60

    PROBE_TIMEOUT_MS: int = 3000
    CONNECT_TIMEOUT_MS: int = 2000
    BATCH_CHUNK_SIZE: int = 10


settings = Settings()

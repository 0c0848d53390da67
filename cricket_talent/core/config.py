# cricket_talent/core/config.py

import os


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "t", "yes")


# Width of access_codes.code
ACCESS_CODE_MAX_LENGTH = 16


def clamp_code_length(value: int) -> int:
    return min(ACCESS_CODE_MAX_LENGTH, max(6, value))


class Settings:
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cricket_talent.db")

    # JWT
    SECRET_KEY = os.getenv("SECRET_KEY", "change_me_cricket_talent_secret")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

    # Access codes (parent <-> player linking)
    ACCESS_CODE_TTL_DAYS = int(os.getenv("ACCESS_CODE_TTL_DAYS", 7))
    ACCESS_CODE_LENGTH = clamp_code_length(int(os.getenv("ACCESS_CODE_LENGTH", 8)))

    # Achievement stats cache (in-process, invalidated on every review)
    STATS_CACHE_ENABLED = _as_bool(os.getenv("STATS_CACHE_ENABLED", "true"))
    STATS_CACHE_MAX_PLAYERS = int(os.getenv("STATS_CACHE_MAX_PLAYERS", 1024))

    # Local calendar of the players, used for the "not in the future" date check.
    # Default is Asia/Colombo (UTC+5:30, no DST)
    LOCAL_UTC_OFFSET_MINUTES = int(os.getenv("LOCAL_UTC_OFFSET_MINUTES", 330))

    # CORS: comma separated list
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
        ).split(",")
        if origin.strip()
    ]

    DEBUG_MODE = _as_bool(os.getenv("DEBUG_MODE", "false"))


settings = Settings()

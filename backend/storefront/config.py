"""Application settings and validation."""

import os
import re
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent

_RATE_RE = re.compile(r"^\s*(\d+)\s*/\s*([a-z]+)\s*$")
_PERIODS = {
    "s": 1, "sec": 1, "second": 1,
    "m": 60, "min": 60, "minute": 60,
    "h": 3600, "hour": 3600,
    "d": 86400, "day": 86400,
}


def parse_rate(rate: str) -> tuple[int, int]:
    """Parse a throttle rate such as ``100/min`` into ``(requests, seconds)``."""
    m = _RATE_RE.match(rate.lower())
    if not m or m.group(2) not in _PERIODS:
        raise ValueError(f"invalid throttle rate: {rate!r}")
    return int(m.group(1)), _PERIODS[m.group(2)]


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    DATABASE_URL: str
    MEDIA_ROOT: Path
    MEDIA_URL: str
    MAX_UPLOAD_BYTES: int
    PAGE_SIZE: int
    MAX_PAGE_SIZE: int
    ANON_THROTTLE_RATE: str
    USER_THROTTLE_RATE: str
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'storefront.db'}")
        self.MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", str(BASE / "media"))).expanduser().resolve()
        self.MEDIA_URL = "/" + os.getenv("MEDIA_URL", "/media").strip("/")
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))  # 5 MB default
        self.PAGE_SIZE = int(os.getenv("PAGE_SIZE", "10"))
        self.MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
        self.ANON_THROTTLE_RATE = os.getenv("ANON_THROTTLE_RATE", "100/min")
        self.USER_THROTTLE_RATE = os.getenv("USER_THROTTLE_RATE", "1000/min")
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.PAGE_SIZE < 1 or self.MAX_PAGE_SIZE < self.PAGE_SIZE:
            raise RuntimeError("PAGE_SIZE must be >= 1 and <= MAX_PAGE_SIZE")
        parse_rate(self.ANON_THROTTLE_RATE)
        parse_rate(self.USER_THROTTLE_RATE)

    @property
    def anon_rate(self) -> tuple[int, int]:
        return parse_rate(self.ANON_THROTTLE_RATE)

    @property
    def user_rate(self) -> tuple[int, int]:
        return parse_rate(self.USER_THROTTLE_RATE)


def get_settings() -> Settings:
    """Build a fresh `Settings` from the current environment."""
    return Settings()


settings = Settings()

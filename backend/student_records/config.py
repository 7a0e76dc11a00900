"""Application settings and validation."""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE = Path(__file__).resolve().parent.parent

# process env wins over .env values
load_dotenv(dotenv_path=BASE.parent / ".env")


class Settings:
    ENV: str
    MONGO_URI: str
    MONGO_DB_NAME: str
    MONGO_TIMEOUT_MS: int
    PORT: int
    LOG_LEVEL: str
    LOG_DIR: str
    ALLOW_CORS: bool
    STATIC_DIR: Path

    def __init__(self):
        self.ENV = os.getenv("ENV", "development")
        self.MONGO_URI = os.getenv("MONGO_URI", "").strip()
        self.MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "student_records")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR = os.getenv("LOG_DIR", "").strip()
        self.ALLOW_CORS = os.getenv("ALLOW_CORS", "true").lower() == "true"
        self.STATIC_DIR = Path(os.getenv("STATIC_DIR", str(BASE / "static"))).expanduser()
        try:
            self.PORT = int(os.getenv("PORT", "3000"))
            self.MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))
        except ValueError as exc:
            raise RuntimeError(f"PORT and MONGO_TIMEOUT_MS must be integers: {exc}") from exc
        self._validate()

    def _validate(self):
        if not 0 < self.PORT < 65536:
            raise RuntimeError(f"PORT out of range: {self.PORT}")
        if self.MONGO_TIMEOUT_MS <= 0:
            raise RuntimeError("MONGO_TIMEOUT_MS must be positive")


settings = Settings()

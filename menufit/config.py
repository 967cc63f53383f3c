from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the tracker backend and sync client."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("MENUFIT_DATA_ROOT") or data_root_default
        ).expanduser()
        self.app_db_path: Path = Path(
            os.environ.get("MENUFIT_DB_PATH") or (self.data_root / "menufit.db")
        ).expanduser()
        # In production you MUST set MENUFIT_JWT_SECRET. The dev secret keeps local runs easy
        # but is not safe for public deployments.
        self.jwt_secret: str = os.environ.get("MENUFIT_JWT_SECRET") or "dev-secret-change-me"
        self.token_ttl_days: int = int(os.environ.get("MENUFIT_TOKEN_TTL_DAYS") or "7")
        self.log_level: str = (os.environ.get("MENUFIT_LOG_LEVEL") or "INFO").upper()
        self.host: str = os.environ.get("MENUFIT_HOST") or "127.0.0.1"
        try:
            self.port: int = int(os.environ.get("MENUFIT_PORT") or "4000")
        except ValueError:
            self.port = 4000

        # ---- Sync client ----
        self.api_base: str = os.environ.get("MENUFIT_API_BASE") or "http://localhost:4000"
        self.cache_path: Path = Path(
            os.environ.get("MENUFIT_CACHE_PATH") or (self.data_root / "client-cache.db")
        ).expanduser()
        self.http_timeout: float = float(os.environ.get("MENUFIT_HTTP_TIMEOUT") or "15")
        self.synced_reset_sec: float = float(os.environ.get("MENUFIT_SYNCED_RESET_SEC") or "2")
        self.error_reset_sec: float = float(os.environ.get("MENUFIT_ERROR_RESET_SEC") or "3")

        cors = os.environ.get("MENUFIT_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]

DRY_RUN_TRUE_VALUES = {"1", "true"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_path: str = "./data/obra.db"
    dry_run: str = ""

    admin_instance_name: str = "Instancia Principal"
    admin_email: str = "admin@exemplo.com"
    admin_password: str = "admin123"
    admin_is_superadmin: str = "true"
    password_hash_rounds: int = 10

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def resolved_database_path(self) -> Path:
        path = Path(self.database_path)
        if path.is_absolute():
            return path
        return BASE_DIR / path

    @property
    def is_dry_run(self) -> bool:
        return self.dry_run in DRY_RUN_TRUE_VALUES

    @property
    def grant_super_admin(self) -> bool:
        return (self.admin_is_superadmin or "true").lower() == "true"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

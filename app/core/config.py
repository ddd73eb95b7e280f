# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

class Settings(BaseSettings):
    APP_NAME: str = "Arquivo - Gestão de Prontuários"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Gaveteiros, ocupação, empréstimos e arquivo morto."
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Sessões e autenticação
    SESSION_TTL_MINUTES: int = 480
    BCRYPT_ROUNDS: int = 12
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_WINDOW_SECONDS: int = 60
    DEFAULT_ADMIN_LOGIN: str | None = None
    DEFAULT_ADMIN_PASSWORD: str | None = None

    # Arquivo morto
    ARCHIVE_RETENTION_YEARS: int = 5

    # Banco: DATABASE_URL tem prioridade sobre MYSQL_*
    DATABASE_URL: str | None = None
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_DB: str = "arquivo"
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = "2023"
    MYSQL_CHARSET: str = "utf8mb4"

    DATA_DIR: str = "./app/data/inbox"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def data_path(self) -> Path:
        return Path(self.DATA_DIR).expanduser().resolve()
    @property
    def sqlalchemy_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}"
            f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DB}"
            f"?charset={self.MYSQL_CHARSET}"
        )
    @property
    def is_sqlite(self) -> bool:
        return self.sqlalchemy_url.startswith("sqlite")

@lru_cache
def get_settings() -> Settings:
    return Settings()

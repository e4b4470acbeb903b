from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class SQLConfig(BaseModel):
    driver: str
    username: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None
    database: str
    additional_config: dict[str, str] | None = {}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ALLOWED_ORIGINS: str = "http://localhost"

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str | None = None

    # Grid paging
    DEFAULT_PAGE_LIMIT: int = 500
    EXPORT_PAGE_SIZE: int = 5_000

    # Offline payload cache
    LOCAL_CACHE_PATH: str = ".tabulary-cache.json"
    LOCAL_CACHE_KEY: str = "offline-crm-table"

    # Database config
    DB_DRIVER: str = "postgresql+asyncpg"
    DB_CREATE_SCHEMA: bool = False
    PG_DB_HOST: str = ""
    PG_DB_NAME: str = ""
    PG_DB_PASSWORD: str = ""
    PG_DB_USER: str = ""
    PG_DB_PORT: int = 5432

    @property
    def PG_DB_CONFIG(self) -> SQLConfig:
        if self.DB_DRIVER.startswith("sqlite"):
            # sqlite only needs the file path
            return SQLConfig(driver=self.DB_DRIVER, database=self.PG_DB_NAME)

        return SQLConfig(
            driver=self.DB_DRIVER,
            host=self.PG_DB_HOST,
            port=self.PG_DB_PORT,
            database=self.PG_DB_NAME,
            username=self.PG_DB_USER,
            password=self.PG_DB_PASSWORD,
            additional_config={},
        )

    @property
    def PARSED_ALLOWED_ORIGINS(self):
        return [x.strip() for x in self.ALLOWED_ORIGINS.split(",")]


settings = Settings()

__all__ = ["settings"]

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    NODE_ENV: str = "development"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_DATABASE: str = "learnhub"
    POSTGRES_PORT: str = "5432"  # Default port for PostgreSQL

    # Full connection string, takes precedence over the POSTGRES_* parts
    DATABASE_URL: Optional[str] = None

    # "database" (system of record) or "memory" (non-persistent stand-in)
    STORAGE_BACKEND: str = "database"

    # Session tokens
    SESSION_SECRET: str = "your-session-secret-here"
    SESSION_EXPIRE_HOURS: int = 24

    # CORS configuration - comma-separated list of allowed origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5000,http://localhost:5173,http://localhost:8000"

    # Course uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024

    LOG_LEVEL: str = "INFO"

    # Size of the "recommended" bucket on /api/courses/recommended
    RECOMMENDED_COURSES_LIMIT: int = 8

    # Construct the full URL dynamically
    @property
    def POSTGRES_URL(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"
        )

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=".env.development", extra="ignore")


settings = Settings()

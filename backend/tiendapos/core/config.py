from decimal import Decimal
from typing import List
import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "dev"
    secret_key: str = "change_me_super_secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 8
    refresh_token_expire_minutes: int = 60 * 24 * 30
    database_url: str = "postgresql+psycopg2://posuser:pospass@db:5432/tiendapos"
    backend_cors_origins: str = "http://localhost:3000"
    bcrypt_rounds: int = 12
    # Tolerance for money equality checks (payments vs total)
    money_epsilon: Decimal = Decimal("0.01")
    log_level: str = "INFO"

    port: int = int(os.getenv("PORT", "8000"))

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()

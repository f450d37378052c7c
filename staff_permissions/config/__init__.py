"""
Permission Manager Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Client settings"""

    # Application
    APP_NAME: str = "Staff Permission Manager"
    APP_VERSION: str = "1.0.0"

    # Backend REST API
    API_BASE_URL: str = "http://localhost:8000/api"
    CATALOG_PATH: str = "/fetch_all_permissions"
    ASSIGNED_PATH: str = "/get_staff_permissions/{staff_id}"
    ASSIGN_PATH: str = "/assign_permissions"
    HTTP_TIMEOUT: float = 30.0

    # Pagination
    DEFAULT_PER_PAGE: int = 10  # used when the catalog envelope omits last_page

    # Auth token (plain, or Fernet-encrypted at rest)
    AUTH_TOKEN: str = ""
    AUTH_TOKEN_ENCRYPTED: str = ""
    ENCRYPTION_KEY: str = ""  # Generate with: from cryptography.fernet import Fernet; Fernet.generate_key()

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()

"""API settings loaded from the environment and ``.env``."""

from functools import lru_cache
from typing import List, Union

from pydantic import model_validator
from pydantic_settings import BaseSettings


def _split_csv(value: Union[str, List[str]]) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """API settings.

    List settings accept a comma-separated string, e.g.
    ``ALLOWED_ORIGINS=https://puskesmas.example,http://localhost:3000``.
    """

    api_prefix: str = "/api/v1"
    # Request bodies carry lab values and technician notes
    log_request_body: bool = False

    allowed_origins: Union[str, List[str]] = "http://localhost:3000,http://localhost:5173"
    allowed_methods: Union[str, List[str]] = "GET,POST,PUT,OPTIONS"
    allowed_headers: Union[str, List[str]] = "*"

    @model_validator(mode='after')
    def split_cors_lists(self):
        self.allowed_origins = _split_csv(self.allowed_origins)
        self.allowed_methods = _split_csv(self.allowed_methods)
        self.allowed_headers = _split_csv(self.allowed_headers)
        return self

    class Config:
        env_file = ".env"
        case_sensitive = False
        env_ignore_empty = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached API settings."""
    return Settings()

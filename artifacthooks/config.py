from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

load_dotenv()


class Settings(BaseModel):
    WEBHOOKS_CONFIG_PATH: str = Field(
        default="webhooks.properties",
        description="key=value file mapping repository/group/artifact keys to URLs",
    )
    DELIVERY_CONCURRENCY: int = Field(default=3, ge=1)
    DELIVERY_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)
    SHUTDOWN_DRAIN_SECONDS: float = Field(default=10.0, ge=0)
    # subscriber endpoints are usually internal and self-signed
    VERIFY_TLS: bool = Field(default=False)
    USER_AGENT: str = Field(default="artifacthooks")
    PROXY_ENABLED: bool = Field(default=False)
    PROXY_HOST: Optional[str] = Field(default=None)
    PROXY_PORT: int = Field(default=8080)
    PROXY_USERNAME: Optional[str] = Field(default=None)
    PROXY_PASSWORD: Optional[str] = Field(default=None)
    API_TOKEN: str = Field(default="dev_token")  # simple bearer for admin routes
    API_KEYS: str = Field(default="", description="comma-separated API keys")
    CORS_ALLOW_ORIGINS: str = Field(default="*")
    LOG_LEVEL: str = Field(default="INFO")


def _load_settings(existing: Settings | None = None) -> Settings:
    values: dict[str, Any] = {}
    for name, field in Settings.model_fields.items():
        env_value = os.getenv(name)
        if env_value is None:
            if existing is not None and hasattr(existing, name):
                values[name] = getattr(existing, name)
                continue
            values[name] = field.get_default(call_default_factory=True)
        else:
            values[name] = env_value

    try:
        return Settings(**values)
    except ValidationError as exc:
        invalid = sorted(
            {str(error["loc"][0]) for error in exc.errors() if error.get("loc")}
        )
        raise RuntimeError(
            f"Invalid environment variables: {', '.join(invalid)}"
        ) from exc


settings = _load_settings()


def reload_settings() -> Settings:
    global settings
    fresh = _load_settings(settings)
    settings.__dict__.update(fresh.__dict__)
    return settings

from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "exprguard"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Expression engine limits. The 500 character cap and the function
    # whitelist are constants in engines/expression, not settings.
    EXPRESSION_MAX_DEPTH: int = 32
    # Per-evaluation time budget in milliseconds; 0 disables the check.
    EXPRESSION_EVAL_TIMEOUT_MS: int = 100

    # Security audit trail
    AUDIT_HISTORY_SIZE: int = 100
    AUDIT_RECENT_LIMIT: int = 10
    AUDIT_EXPRESSION_PREFIX: int = 200
    LOG_EXPRESSION_PREFIX: int = 100


settings = Settings()  # type: ignore

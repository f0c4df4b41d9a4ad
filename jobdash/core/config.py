"""Application configuration management."""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # 2Captcha solving service
    twocaptcha_api_key: str | None = None
    captcha_in_url: str = "https://2captcha.com/in.php"
    captcha_res_url: str = "https://2captcha.com/res.php"
    captcha_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Overall polling budget measured from task submission",
    )
    captcha_request_timeout: float = Field(default=30.0, gt=0)

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/applications.db"

    # Dashboard
    screenshots_dir: str | None = Field(
        default=None,
        description="If set, screenshots are only served from this directory",
    )

    log_level: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()

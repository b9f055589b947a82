from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Blog Store"
    DATABASE_URL: str = "sqlite:///./blog.db"

    # slugs are served under PAGE_ROOT + "/" + slug
    PAGE_ROOT: str = ""

    LOG_LEVEL: str = "INFO"

    SLUG_TITLE_CHARS: int = 26
    COLLAPSE_RENAMES: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("PAGE_ROOT", mode="before")
    @classmethod
    def _strip_page_root(cls, v):
        if v is None:
            return ""
        return str(v).strip().rstrip("/")

    def page_url(self, slug: str) -> str:
        return f"{self.PAGE_ROOT}/{slug}"


settings = Settings()

# src/config.py

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="PDF Flashcards API", alias="APP_NAME")
    version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="APP_ENV")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    openai_temperature: float = Field(default=0.7, alias="OPENAI_TEMPERATURE")

    # Extraction limits; bound resource use on large or hostile uploads
    pdf_max_pages: int = Field(default=50, alias="PDF_MAX_PAGES")
    pdf_load_timeout: float = Field(default=30.0, alias="PDF_LOAD_TIMEOUT")
    pdf_page_timeout: float = Field(default=10.0, alias="PDF_PAGE_TIMEOUT")

    # Soft deadline for /process-pdf in seconds, 0 disables it
    request_timeout: float = Field(default=50.0, alias="REQUEST_TIMEOUT")

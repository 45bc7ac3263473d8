import os
import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS = [
    "https://petalpath.onrender.com",
    "http://127.0.0.1:5173",
    "http://localhost:5173",
]

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp", "image/heic"]


class StylistSettings(BaseModel):
    project_id: Optional[str] = None
    location: Optional[str] = None
    credentials_file: Optional[str] = Field(None, description="Service account JSON; ADC is used when unset")
    text_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-3.0-generate-002"
    illustration_aspect_ratio: str = "1:1"
    temperature: float = 0.7
    max_output_tokens: int = 8192
    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    max_upload_mb: int = 10

    @property
    def is_configured(self) -> bool:
        return bool(self.project_id and self.location)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "StylistSettings":
        load_dotenv()  # .env for local development

        values = {
            "project_id": os.getenv("GOOGLE_PROJECT_ID"),
            "location": os.getenv("GOOGLE_LOCATION"),
            "credentials_file": os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        }
        optional = {
            "text_model": os.getenv("GEMINI_TEXT_MODEL"),
            "image_model": os.getenv("IMAGEN_MODEL"),
            "illustration_aspect_ratio": os.getenv("ILLUSTRATION_ASPECT_RATIO"),
            "temperature": os.getenv("STYLIST_TEMPERATURE"),
            "max_output_tokens": os.getenv("MAX_OUTPUT_TOKENS"),
            "max_upload_mb": os.getenv("MAX_UPLOAD_MB"),
        }
        values.update({key: value for key, value in optional.items() if value})

        origins = os.getenv("ALLOWED_ORIGINS")
        if origins:
            values["allowed_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        settings = cls(**values)
        if not settings.is_configured:
            logger.error("GOOGLE_PROJECT_ID or GOOGLE_LOCATION is not set; the stylist will answer 503.")
        return settings

from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_path: str = os.getenv("UNIRECORDS_DB_PATH", "data/unirecords.db")
    admin_email: str = os.getenv("UNIRECORDS_ADMIN_EMAIL", "").strip().lower()
    log_level: str = os.getenv("UNIRECORDS_LOG_LEVEL", "INFO").upper()

    cors_allowed_origins: tuple[str, ...] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )
    cors_allow_origin_regex: str = os.getenv(
        "CORS_ALLOW_ORIGIN_REGEX",
        r"^https?:\/\/(localhost|127\.0\.0\.1)(:\d+)?$",
    )

    web_mode: bool = os.getenv("UNIRECORDS_WEB", "0") == "1"
    port: int = int(os.getenv("PORT", "8550"))


settings = Settings()

from dataclasses import dataclass
import os
from dotenv import load_dotenv

from logit.services.validation import clean_target


load_dotenv()


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    db_path: str = "data/logit.db"
    log_level: str = "INFO"
    web_mode: bool = False
    port: int = 8550
    target_grade: float = 90.0
    tick_seconds: float = 1.0


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("LOGIT_DB_PATH", "data/logit.db"),
        log_level=os.getenv("LOGIT_LOG_LEVEL", "INFO").upper(),
        web_mode=_flag(os.getenv("LOGIT_WEB", "0")),
        port=int(os.getenv("PORT", "8550")),
        target_grade=clean_target(os.getenv("LOGIT_TARGET_GRADE", "90")),
        tick_seconds=float(os.getenv("LOGIT_TICK_SECONDS", "1.0")),
    )


settings = load_settings()

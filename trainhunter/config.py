"""Configuration utilities.

Central place to load environment driven settings (concurrency, retries, timeouts,
provider endpoint, email credentials). Avoids scattering os.getenv calls around the codebase.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env once on module import
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Settings:
    max_concurrency: int = int(os.getenv("TRAINHUNTER_MAX_CONCURRENCY", "3"))
    retry_attempts: int = int(os.getenv("TRAINHUNTER_RETRY_ATTEMPTS", "3"))
    retry_base_delay: float = float(os.getenv("TRAINHUNTER_RETRY_BASE_DELAY", "1.0"))
    date_retry_attempts: int = int(os.getenv("TRAINHUNTER_DATE_RETRY_ATTEMPTS", "2"))
    date_retry_delay: float = float(os.getenv("TRAINHUNTER_DATE_RETRY_DELAY", "2.0"))
    batch_delay: float = float(os.getenv("TRAINHUNTER_BATCH_DELAY", "0.5"))
    search_timeout: float = float(os.getenv("TRAINHUNTER_SEARCH_TIMEOUT", "300"))
    max_results: int = int(os.getenv("TRAINHUNTER_MAX_RESULTS", "10"))
    use_progress_bars: bool = _env_bool("TRAINHUNTER_PROGRESS", "true")
    provider_url: str = os.getenv("TRAINHUNTER_PROVIDER_URL", "https://v6.db.transport.rest")
    provider_timeout: float = float(os.getenv("TRAINHUNTER_PROVIDER_TIMEOUT", "30"))
    output_path: Path = Path(os.getenv("TRAINHUNTER_OUTPUT", "deals.html"))
    src_mail: str | None = os.getenv("SRC_MAIL")
    src_pwd: str | None = os.getenv("SRC_PWD")
    dst_mail: str | None = os.getenv("DST_MAIL")

    def email_configured(self) -> bool:
        return all([self.src_mail, self.src_pwd, self.dst_mail])

    def validate(self) -> list[str]:
        errors = []
        if not 1 <= self.max_concurrency <= 8:
            errors.append("max_concurrency must be between 1 and 8")
        if not 30 <= self.search_timeout <= 600:
            errors.append("search_timeout must be between 30 seconds and 10 minutes")
        if not 1 <= self.max_results <= 50:
            errors.append("max_results must be between 1 and 50")
        if self.retry_attempts < 1:
            errors.append("retry_attempts must be at least 1")
        if self.date_retry_attempts < 1:
            errors.append("date_retry_attempts must be at least 1")
        if self.batch_delay < 0 or self.date_retry_delay < 0 or self.retry_base_delay < 0:
            errors.append("delays cannot be negative")
        return errors


settings = Settings()

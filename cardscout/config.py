"""Centralised settings for CardScout.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  Per-run overrides from
the CLI are applied with :func:`dataclasses.replace` on the singleton.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

_UNWANTED_SELECTORS = [
    "script", "style", "noscript", "nav", "header", "footer",
    ".advertisement", ".ads", ".social-media", ".navigation",
    ".menu", ".sidebar", ".cookie-banner", ".popup",
    "iframe", "object", "embed", ".breadcrumb",
    ".modal", ".overlay", ".loading", ".spinner",
    '[style*="display: none"]', '[style*="visibility: hidden"]',
]

_AFFILIATED_DOMAINS = [
    "hdfcbank.com",
    "smartbuy.hdfcbank.com",
    "offers.hdfcbank.com",
    "mycards.hdfcbank.com",
    "pixel.hdfcbank.com",
]

_LISTING_URL_PATTERNS = [
    "/credit-cards",
    "/credit-cards/",
    "credit-cards.page",
    "/cards/credit-cards",
    "/all-cards",
    "/compare-cards",
]

_CARD_NAME_TOKENS = [
    "pixel", "freedom", "millennia", "regalia", "diners", "moneyback",
    "indianoil", "infinia", "marriott", "irctc", "tata-neu", "swiggy",
    "-credit-card",
]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    output_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("CARDSCOUT_OUTPUT_DIR", Path.cwd() / "json_results")
        )
    )

    # ------------------------------------------------------------------
    # Structuring model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4.1-mini")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0.1"))
    )
    llm_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("LLM_MAX_TOKENS", "4000"))
    )
    listing_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("LISTING_MAX_TOKENS", "3500"))
    )

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    pdf_timeout: float = field(
        default_factory=lambda: float(os.environ.get("PDF_TIMEOUT", "90.0"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "10"))
    )
    head_timeout: float = field(
        default_factory=lambda: float(os.environ.get("HEAD_TIMEOUT", "10.0"))
    )
    head_max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("HEAD_MAX_REDIRECTS", "5"))
    )
    fetch_max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_ATTEMPTS", "3"))
    )
    pdf_retry_delay: float = field(
        default_factory=lambda: float(os.environ.get("PDF_RETRY_DELAY", "3.0"))
    )
    web_retry_delay: float = field(
        default_factory=lambda: float(os.environ.get("WEB_RETRY_DELAY", "5.0"))
    )
    headless: bool = field(default_factory=lambda: _env_bool("HEADLESS", "true"))
    user_agent: str = field(
        default_factory=lambda: os.environ.get("CARDSCOUT_USER_AGENT", _DEFAULT_USER_AGENT)
    )
    unwanted_selectors: list[str] = field(
        default_factory=lambda: _env_list("UNWANTED_SELECTORS", _UNWANTED_SELECTORS)
    )

    # ------------------------------------------------------------------
    # Crawl pacing & limits
    # ------------------------------------------------------------------
    delay_between_requests: float = field(
        default_factory=lambda: float(os.environ.get("DELAY_BETWEEN_REQUESTS", "2.0"))
    )
    delay_between_cards: float = field(
        default_factory=lambda: float(os.environ.get("DELAY_BETWEEN_CARDS", "5.0"))
    )
    delay_between_validation: float = field(
        default_factory=lambda: float(os.environ.get("DELAY_BETWEEN_VALIDATION", "0.5"))
    )
    delay_between_chunks: float = field(
        default_factory=lambda: float(os.environ.get("DELAY_BETWEEN_CHUNKS", "1.0"))
    )
    max_links_to_process: int = field(
        default_factory=lambda: int(os.environ.get("MAX_LINKS_TO_PROCESS", "0"))
    )
    max_content_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONTENT_LENGTH", "45000"))
    )
    force_listing_mode: bool = field(
        default_factory=lambda: _env_bool("FORCE_LISTING_MODE")
    )
    force_single_mode: bool = field(
        default_factory=lambda: _env_bool("FORCE_SINGLE_MODE")
    )

    # ------------------------------------------------------------------
    # Listing extraction
    # ------------------------------------------------------------------
    listing_token_budget: int = field(
        default_factory=lambda: int(os.environ.get("LISTING_TOKEN_BUDGET", "15000"))
    )
    listing_chunk_size: int = field(
        default_factory=lambda: int(os.environ.get("LISTING_CHUNK_SIZE", "6000"))
    )
    listing_max_chunks: int = field(
        default_factory=lambda: int(os.environ.get("LISTING_MAX_CHUNKS", "5"))
    )

    # ------------------------------------------------------------------
    # Heuristic policies
    # ------------------------------------------------------------------
    affiliated_domains: list[str] = field(
        default_factory=lambda: _env_list("AFFILIATED_DOMAINS", _AFFILIATED_DOMAINS)
    )
    listing_url_patterns: list[str] = field(
        default_factory=lambda: _env_list("LISTING_URL_PATTERNS", _LISTING_URL_PATTERNS)
    )
    card_name_tokens: list[str] = field(
        default_factory=lambda: _env_list("CARD_NAME_TOKENS", _CARD_NAME_TOKENS)
    )
    section_row_selector: str = field(
        default_factory=lambda: os.environ.get("SECTION_ROW_SELECTOR", ".row.content-body")
    )

    def ensure_output_dir(self) -> Path:
        """Create the output directory if it does not exist and return it."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir


# Module-level singleton, import this everywhere:
#   from cardscout.config import settings
settings = Settings()

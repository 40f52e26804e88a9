"""Configuration management for LinkSentry."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Set

import yaml
from dotenv import load_dotenv

from .analyzer.models import TrustedBrand
from .constants import (
    DEFAULT_SHORTENER_DOMAINS,
    DEFAULT_SUSPICIOUS_KEYWORDS,
    DEFAULT_SUSPICIOUS_TLDS,
    DEFAULT_TRACKING_PARAMS,
    DOMAIN_AGE_CACHE_MAX_ENTRIES,
    DOMAIN_AGE_CACHE_TTL_SECONDS,
    RDAP_BASE_URL,
    RDAP_TIMEOUT_SECONDS,
    REDIRECT_MAX_HOPS,
    REDIRECT_TIMEOUT_SECONDS,
    TLS_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


DEFAULT_TRUSTED_BRANDS: list[TrustedBrand] = [
    TrustedBrand("paypal", "paypal.com"),
    TrustedBrand("google", "google.com"),
    TrustedBrand("microsoft", "microsoft.com"),
    TrustedBrand("apple", "apple.com"),
    TrustedBrand("amazon", "amazon.com"),
    TrustedBrand("facebook", "facebook.com"),
    TrustedBrand("netflix", "netflix.com"),
]


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # HTTP service
    api_host: str = "127.0.0.1"
    api_port: int = 4000

    # Probes
    rdap_base_url: str = RDAP_BASE_URL
    rdap_timeout: float = RDAP_TIMEOUT_SECONDS
    tls_timeout: float = TLS_TIMEOUT_SECONDS
    redirect_timeout: float = REDIRECT_TIMEOUT_SECONDS
    redirect_max_hops: int = REDIRECT_MAX_HOPS
    domain_age_cache_ttl: int = DOMAIN_AGE_CACHE_TTL_SECONDS
    domain_age_cache_size: int = DOMAIN_AGE_CACHE_MAX_ENTRIES

    log_level: str = "INFO"

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("./data"))
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    # Heuristics (override via config/heuristics.yaml)
    suspicious_keywords: list[str] = field(
        default_factory=lambda: list(DEFAULT_SUSPICIOUS_KEYWORDS)
    )
    suspicious_tlds: Set[str] = field(default_factory=lambda: set(DEFAULT_SUSPICIOUS_TLDS))
    shortener_domains: Set[str] = field(
        default_factory=lambda: set(DEFAULT_SHORTENER_DOMAINS)
    )
    tracking_params: list[str] = field(default_factory=lambda: list(DEFAULT_TRACKING_PARAMS))

    # Seed data for the trusted_brands table (config/brands.txt)
    trusted_brands: list[TrustedBrand] = field(
        default_factory=lambda: list(DEFAULT_TRUSTED_BRANDS)
    )

    def __post_init__(self):
        """Normalize paths and load brand seed list."""
        self.data_dir = Path(self.data_dir)
        self.config_dir = Path(self.config_dir)
        self._load_lists()

    @property
    def db_path(self) -> Path:
        return self.data_dir / "linksentry.db"

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _load_lists(self):
        """Load the trusted-brand seed list from config files."""
        brands_path = self.config_dir / "brands.txt"
        if brands_path.exists():
            brands = load_brand_file(brands_path)
            if brands:
                self.trusted_brands = brands


def load_brand_file(path: Path) -> list[TrustedBrand]:
    """Load ``brand,official_domain`` lines, ignoring comments and empty lines."""
    brands: list[TrustedBrand] = []
    seen: set[tuple[str, str]] = set()
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            name, sep, domain = line.partition(",")
            name = name.strip().lower()
            domain = domain.strip().lower()
            if not sep or not name or not domain:
                logger.warning("Ignoring malformed brand line in %s: %r", path, line)
                continue
            if (name, domain) in seen:
                continue
            seen.add((name, domain))
            brands.append(TrustedBrand(brand_name=name, official_domain=domain))
    return brands


def _load_heuristics(config_dir: Path) -> dict:
    """Load heuristic overrides from config/heuristics.yaml (optional)."""
    path = Path(config_dir or ".") / "heuristics.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        logger.warning("Failed to parse heuristics.yaml: %s", exc)
        return {}

    def _coerce_str_list(raw):
        if not isinstance(raw, (list, tuple, set)):
            return None
        items = [str(item).strip().lower() for item in raw if str(item or "").strip()]
        return items or None

    lexical_cfg = data.get("lexical", {}) if isinstance(data, dict) else {}
    if not isinstance(lexical_cfg, dict):
        return {}

    return {
        "suspicious_keywords": _coerce_str_list(lexical_cfg.get("suspicious_keywords")),
        "suspicious_tlds": _coerce_str_list(lexical_cfg.get("suspicious_tlds")),
        "shortener_domains": _coerce_str_list(lexical_cfg.get("shortener_domains")),
        "tracking_params": _coerce_str_list(lexical_cfg.get("tracking_params")),
    }


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    heuristics = _load_heuristics(config_dir)

    keywords = heuristics.get("suspicious_keywords")
    tlds = heuristics.get("suspicious_tlds")
    shorteners = heuristics.get("shortener_domains")
    tracking = heuristics.get("tracking_params")

    return Config(
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=int(os.getenv("API_PORT", "4000")),
        rdap_base_url=os.getenv("RDAP_BASE_URL", RDAP_BASE_URL),
        rdap_timeout=float(os.getenv("RDAP_TIMEOUT", str(RDAP_TIMEOUT_SECONDS))),
        tls_timeout=float(os.getenv("TLS_TIMEOUT", str(TLS_TIMEOUT_SECONDS))),
        redirect_timeout=float(os.getenv("REDIRECT_TIMEOUT", str(REDIRECT_TIMEOUT_SECONDS))),
        redirect_max_hops=int(os.getenv("REDIRECT_MAX_HOPS", str(REDIRECT_MAX_HOPS))),
        domain_age_cache_ttl=int(
            os.getenv("DOMAIN_AGE_CACHE_TTL", str(DOMAIN_AGE_CACHE_TTL_SECONDS))
        ),
        domain_age_cache_size=int(
            os.getenv("DOMAIN_AGE_CACHE_SIZE", str(DOMAIN_AGE_CACHE_MAX_ENTRIES))
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        data_dir=Path(os.getenv("DATA_DIR", "./data")),
        config_dir=config_dir,
        suspicious_keywords=keywords or list(DEFAULT_SUSPICIOUS_KEYWORDS),
        suspicious_tlds=set(tlds) if tlds else set(DEFAULT_SUSPICIOUS_TLDS),
        shortener_domains=set(shorteners) if shorteners else set(DEFAULT_SHORTENER_DOMAINS),
        tracking_params=tracking or list(DEFAULT_TRACKING_PARAMS),
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []
    if not (0 < config.api_port < 65536):
        errors.append(f"API_PORT out of range: {config.api_port}")
    if not config.rdap_base_url.lower().startswith(("https://", "http://")):
        errors.append("RDAP_BASE_URL must be an http(s) URL")
    for name, value in (
        ("RDAP_TIMEOUT", config.rdap_timeout),
        ("TLS_TIMEOUT", config.tls_timeout),
        ("REDIRECT_TIMEOUT", config.redirect_timeout),
    ):
        if value <= 0:
            errors.append(f"{name} must be positive")
    if config.redirect_max_hops < 1:
        errors.append("REDIRECT_MAX_HOPS must be at least 1")
    if config.domain_age_cache_ttl <= 0:
        errors.append("DOMAIN_AGE_CACHE_TTL must be positive")
    if config.domain_age_cache_size < 1:
        errors.append("DOMAIN_AGE_CACHE_SIZE must be at least 1")
    if not isinstance(logging.getLevelName(config.log_level), int):
        errors.append(f"Unknown LOG_LEVEL: {config.log_level}")
    if not config.trusted_brands:
        logger.info("No trusted brands configured; brand impersonation checks will not fire")
    return errors

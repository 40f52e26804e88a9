"""Tests for configuration loading."""

from pathlib import Path

import pytest

from linksentry.analyzer.models import TrustedBrand
from linksentry.config import Config, load_brand_file, load_config, validate_config
from linksentry.constants import DEFAULT_SUSPICIOUS_KEYWORDS

ENV_VARS = (
    "API_HOST",
    "API_PORT",
    "DATA_DIR",
    "CONFIG_DIR",
    "RDAP_BASE_URL",
    "RDAP_TIMEOUT",
    "TLS_TIMEOUT",
    "REDIRECT_TIMEOUT",
    "REDIRECT_MAX_HOPS",
    "DOMAIN_AGE_CACHE_TTL",
    "DOMAIN_AGE_CACHE_SIZE",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("linksentry.config.load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    return monkeypatch


def test_defaults(clean_env):
    config = load_config()

    assert config.api_host == "127.0.0.1"
    assert config.api_port == 4000
    assert config.rdap_base_url == "https://rdap.org/domain"
    assert config.redirect_max_hops == 10
    assert config.domain_age_cache_ttl == 6 * 3600
    assert config.suspicious_keywords == list(DEFAULT_SUSPICIOUS_KEYWORDS)
    assert TrustedBrand("paypal", "paypal.com") in config.trusted_brands
    assert validate_config(config) == []


def test_env_overrides(clean_env, tmp_path):
    clean_env.setenv("API_PORT", "8088")
    clean_env.setenv("RDAP_TIMEOUT", "1.5")
    clean_env.setenv("REDIRECT_MAX_HOPS", "4")
    clean_env.setenv("LOG_LEVEL", "debug")

    config = load_config()

    assert config.api_port == 8088
    assert config.rdap_timeout == 1.5
    assert config.redirect_max_hops == 4
    assert config.log_level == "DEBUG"
    assert config.db_path == tmp_path / "data" / "linksentry.db"


def test_heuristics_and_brand_files(clean_env, tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "heuristics.yaml").write_text(
        "lexical:\n"
        "  suspicious_keywords: [Wallet, seed-phrase]\n"
        "  suspicious_tlds: [zip]\n"
    )
    (config_dir / "brands.txt").write_text(
        "# brand,official domain\n"
        "MetaMask,metamask.io\n"
        "metamask,metamask.io\n"
        "broken line\n"
    )

    config = load_config()

    assert config.suspicious_keywords == ["wallet", "seed-phrase"]
    assert config.suspicious_tlds == {"zip"}
    assert "bit.ly" in config.shortener_domains
    assert config.trusted_brands == [TrustedBrand("metamask", "metamask.io")]


def test_invalid_heuristics_yaml_falls_back_to_defaults(clean_env, tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "heuristics.yaml").write_text("lexical: [unclosed\n")

    config = load_config()
    assert config.suspicious_keywords == list(DEFAULT_SUSPICIOUS_KEYWORDS)


def test_load_brand_file_skips_comments(tmp_path):
    path = tmp_path / "brands.txt"
    path.write_text("\n# comment\nPayPal, PayPal.com\n")
    assert load_brand_file(path) == [TrustedBrand("paypal", "paypal.com")]


def test_validate_config_reports_each_problem():
    config = Config(
        api_port=70000,
        rdap_base_url="ftp://rdap.example",
        tls_timeout=0,
        redirect_max_hops=0,
        log_level="LOUD",
        config_dir=Path("/nonexistent-linksentry-config"),
    )

    errors = validate_config(config)

    assert "API_PORT out of range: 70000" in errors
    assert "RDAP_BASE_URL must be an http(s) URL" in errors
    assert "TLS_TIMEOUT must be positive" in errors
    assert "REDIRECT_MAX_HOPS must be at least 1" in errors
    assert "Unknown LOG_LEVEL: LOUD" in errors

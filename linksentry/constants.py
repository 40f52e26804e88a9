"""Centralized constants for LinkSentry.

Scoring weights, thresholds and the default heuristic lists shared by the
analyzers, the configuration loader and the HTTP service.
"""

from enum import Enum


class RiskStatus(str, Enum):
    """Three-level classification of an evaluated URL."""

    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"

    @classmethod
    def from_score(cls, total_score: int) -> "RiskStatus":
        """Classify an aggregate score: <=5 safe, 6-15 suspicious, >15 dangerous."""
        if total_score <= SAFE_MAX_SCORE:
            return cls.SAFE
        if total_score <= SUSPICIOUS_MAX_SCORE:
            return cls.SUSPICIOUS
        return cls.DANGEROUS

    def __str__(self) -> str:
        return self.value


SAFE_MAX_SCORE = 5
SUSPICIOUS_MAX_SCORE = 15

# Assumed realistic maximum aggregate score; maps total score onto 0-100%.
RISK_SCORE_CEILING = 40

# Navigation context flags (browser-supplied)
CONTEXT_REDIRECTED_POINTS = 6
CONTEXT_EXTERNAL_LIKELY_POINTS = 4
CONTEXT_POPUP_SPAM_POINTS = 8

# Brand matching
BRAND_SIMILAR_DOMAIN_POINTS = 12
BRAND_SUBDOMAIN_ONLY_POINTS = 8

# Domain age
DOMAIN_AGE_NEW_DAYS = 14
DOMAIN_AGE_NEW_POINTS = 15
DOMAIN_AGE_RECENT_DAYS = 90
DOMAIN_AGE_RECENT_POINTS = 10
DOMAIN_AGE_CACHE_TTL_SECONDS = 6 * 60 * 60
DOMAIN_AGE_CACHE_MAX_ENTRIES = 10_000
RDAP_BASE_URL = "https://rdap.org/domain"
RDAP_TIMEOUT_SECONDS = 5.0
RDAP_REGISTRATION_EVENTS = ("registration", "created", "registered")

# TLS certificate
TLS_PORT = 443
TLS_TIMEOUT_SECONDS = 2.5
TLS_EXPIRED_POINTS = 10
TLS_HOSTNAME_MISMATCH_POINTS = 8

# Redirects
REDIRECT_MAX_HOPS = 10
REDIRECT_TIMEOUT_SECONDS = 5.0
REDIRECT_CHAIN_MIN_HOPS = 2
REDIRECT_CHAIN_POINTS = 6
REDIRECT_STATUS_CODES = {301, 302, 303, 307, 308}

# Extra time a check gets beyond its own network timeout before the engine
# resolves it as unavailable.
CHECK_DEADLINE_GRACE_SECONDS = 0.5

USER_AGENT = "LinkSentry/1.0"

# Lexical analysis
NO_HTTPS_POINTS = 5
SUSPICIOUS_KEYWORD_POINTS = 6
IP_HOST_POINTS = 12
PUNYCODE_POINTS = 10
SUSPICIOUS_TLD_POINTS = 8
MANY_HYPHENS_POINTS = 4
MANY_HYPHENS_MIN = 3
MANY_DIGITS_POINTS = 4
MANY_DIGITS_MIN = 5
DIGIT_RUN_POINTS = 3
DIGIT_RUN_MIN = 3
LONG_HOSTNAME_POINTS = 4
LONG_HOSTNAME_MIN = 35
DEEP_SUBDOMAIN_POINTS = 4
DEEP_SUBDOMAIN_MIN_LABELS = 4
SHORTENER_POINTS = 10
TRACKING_PARAM_POINTS = 2

DEFAULT_SUSPICIOUS_KEYWORDS: list[str] = [
    "login-secure",
    "verification",
    "update-account",
    "confirm",
    "free-gift",
]

DEFAULT_SUSPICIOUS_TLDS: set[str] = {
    "xyz",
    "top",
    "click",
    "live",
    "loan",
    "work",
    "support",
    "monster",
    "gq",
    "tk",
    "site",
    "fun",
    "online",
    "vip",
    "bet",
}

# URL shorteners / ad intermediaries (often used in redirect chains)
DEFAULT_SHORTENER_DOMAINS: set[str] = {
    "bit.ly",
    "t.co",
    "tinyurl.com",
    "rb.gy",
    "cutt.ly",
    "goo.gl",
    "lnkd.in",
    "fb.me",
}

DEFAULT_TRACKING_PARAMS: list[str] = [
    "gclid=",
    "fbclid=",
    "utm_source=",
    "utm_medium=",
    "utm_campaign=",
    "ref=",
    "aff=",
    "affiliate=",
]

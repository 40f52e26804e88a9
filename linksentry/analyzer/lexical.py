"""Lexical URL analysis: structural risk markers in the URL string itself."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

import idna

from ..constants import (
    DEEP_SUBDOMAIN_MIN_LABELS,
    DEEP_SUBDOMAIN_POINTS,
    DEFAULT_SHORTENER_DOMAINS,
    DEFAULT_SUSPICIOUS_KEYWORDS,
    DEFAULT_SUSPICIOUS_TLDS,
    DEFAULT_TRACKING_PARAMS,
    DIGIT_RUN_MIN,
    DIGIT_RUN_POINTS,
    IP_HOST_POINTS,
    LONG_HOSTNAME_MIN,
    LONG_HOSTNAME_POINTS,
    MANY_DIGITS_MIN,
    MANY_DIGITS_POINTS,
    MANY_HYPHENS_MIN,
    MANY_HYPHENS_POINTS,
    NO_HTTPS_POINTS,
    PUNYCODE_POINTS,
    SHORTENER_POINTS,
    SUSPICIOUS_KEYWORD_POINTS,
    SUSPICIOUS_TLD_POINTS,
    TRACKING_PARAM_POINTS,
)
from ..utils.domains import is_ip_host, parse_absolute_url
from .models import SignalResult

logger = logging.getLogger(__name__)

_DIGIT_RUN = re.compile(r"[0-9]{%d,}" % DIGIT_RUN_MIN)


class LexicalAnalyzer:
    """Scores a URL on string-level phishing markers. Performs no I/O."""

    def __init__(
        self,
        suspicious_keywords: Optional[Iterable[str]] = None,
        suspicious_tlds: Optional[Iterable[str]] = None,
        shortener_domains: Optional[Iterable[str]] = None,
        tracking_params: Optional[Iterable[str]] = None,
    ):
        self.suspicious_keywords = [
            k.lower() for k in (suspicious_keywords or DEFAULT_SUSPICIOUS_KEYWORDS)
        ]
        self.suspicious_tlds = {
            t.lower().lstrip(".") for t in (suspicious_tlds or DEFAULT_SUSPICIOUS_TLDS)
        }
        self.shortener_domains = {
            d.lower() for d in (shortener_domains or DEFAULT_SHORTENER_DOMAINS)
        }
        self.tracking_params = [p.lower() for p in (tracking_params or DEFAULT_TRACKING_PARAMS)]

    def analyze(self, url: str) -> SignalResult:
        """Score a URL. Unparseable input scores zero with no reasons."""
        parsed = parse_absolute_url(url)
        if parsed is None:
            logger.debug("Lexical analysis skipped for unparseable URL %r", url)
            return SignalResult()

        host = (parsed.hostname or "").strip(".").lower()
        lower_url = url.strip().lower()
        labels = [label for label in host.split(".") if label]

        score = 0
        reasons: list[str] = []

        for points, reason in (
            self._check_scheme(parsed.scheme),
            self._check_keywords(lower_url),
            self._check_ip_host(host),
            self._check_punycode(host),
            self._check_tld(labels),
            self._check_hyphens(host),
            self._check_digits(host),
            self._check_length(host),
            self._check_depth(labels),
            self._check_shortener(host, labels),
            self._check_tracking_params(parsed.query),
        ):
            if points:
                score += points
                reasons.append(reason)

        return SignalResult(score_delta=score, reasons=tuple(reasons))

    @staticmethod
    def _check_scheme(scheme: str) -> tuple[int, str]:
        if scheme.lower() != "https":
            return NO_HTTPS_POINTS, "No HTTPS detected"
        return 0, ""

    def _check_keywords(self, lower_url: str) -> tuple[int, str]:
        if any(keyword in lower_url for keyword in self.suspicious_keywords):
            return SUSPICIOUS_KEYWORD_POINTS, "Suspicious keywords in URL"
        return 0, ""

    @staticmethod
    def _check_ip_host(host: str) -> tuple[int, str]:
        if is_ip_host(host):
            return IP_HOST_POINTS, "Hostname is an IP address (common in phishing)"
        return 0, ""

    @staticmethod
    def _check_punycode(host: str) -> tuple[int, str]:
        if not (host.startswith("xn--") or ".xn--" in host):
            return 0, ""

        reason = "Punycode domain detected (possible lookalike)"
        try:
            decoded = idna.decode(host)
        except (idna.IDNAError, UnicodeError):
            decoded = ""
        if decoded and decoded != host:
            reason = f"{reason}: {decoded}"
        return PUNYCODE_POINTS, reason

    def _check_tld(self, labels: list[str]) -> tuple[int, str]:
        tld = labels[-1] if labels else ""
        if tld in self.suspicious_tlds:
            return SUSPICIOUS_TLD_POINTS, f"Suspicious TLD detected (.{tld})"
        return 0, ""

    @staticmethod
    def _check_hyphens(host: str) -> tuple[int, str]:
        if host.count("-") >= MANY_HYPHENS_MIN:
            return MANY_HYPHENS_POINTS, "Many hyphens in hostname"
        return 0, ""

    @staticmethod
    def _check_digits(host: str) -> tuple[int, str]:
        digit_count = sum(1 for ch in host if "0" <= ch <= "9")
        if digit_count >= MANY_DIGITS_MIN:
            return MANY_DIGITS_POINTS, "Many digits in hostname"
        if _DIGIT_RUN.search(host):
            return DIGIT_RUN_POINTS, "Suspicious digit pattern in hostname"
        return 0, ""

    @staticmethod
    def _check_length(host: str) -> tuple[int, str]:
        if len(host) >= LONG_HOSTNAME_MIN:
            return LONG_HOSTNAME_POINTS, "Very long hostname"
        return 0, ""

    @staticmethod
    def _check_depth(labels: list[str]) -> tuple[int, str]:
        if len(labels) >= DEEP_SUBDOMAIN_MIN_LABELS:
            return DEEP_SUBDOMAIN_POINTS, "Deep subdomain chain"
        return 0, ""

    def _check_shortener(self, host: str, labels: list[str]) -> tuple[int, str]:
        last_two = ".".join(labels[-2:])
        if host in self.shortener_domains or last_two in self.shortener_domains:
            return SHORTENER_POINTS, "Known redirect/shortener domain"
        return 0, ""

    def _check_tracking_params(self, query: str) -> tuple[int, str]:
        params = [p.strip().lower() for p in re.split(r"[&;]", query or "") if p.strip()]
        for param in params:
            if any(param.startswith(prefix) for prefix in self.tracking_params):
                return TRACKING_PARAM_POINTS, "Ad/affiliate tracking parameters"
        return 0, ""

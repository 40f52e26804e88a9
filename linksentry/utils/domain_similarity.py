"""Domain similarity helpers used by brand impersonation matching."""

from __future__ import annotations

from rapidfuzz import fuzz, utils

DOMAIN_SIMILARITY_THRESHOLD = 80


def similarity_percent(left: str, right: str) -> int:
    """Symmetric edit-distance similarity of two domains on a 0-100 scale.

    Domains are compared label-wise (dots and hyphens split tokens), so a
    candidate that wraps the official labels in extra ones, such as
    ``secure-paypal-login.com`` against ``paypal.com``, scores as highly
    similar while unrelated domains stay low.
    """
    a = (left or "").strip().lower()
    b = (right or "").strip().lower()
    if not a or not b:
        return 0
    if a == b:
        return 100
    return int(round(fuzz.token_set_ratio(a, b, processor=utils.default_process)))


def is_similar_domain(left: str, right: str, threshold: int = DOMAIN_SIMILARITY_THRESHOLD) -> bool:
    return similarity_percent(left, right) > threshold

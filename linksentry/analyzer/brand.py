"""Brand impersonation matching against trusted brand domains."""

from __future__ import annotations

from typing import Iterable

from ..constants import BRAND_SIMILAR_DOMAIN_POINTS, BRAND_SUBDOMAIN_ONLY_POINTS
from ..utils.domain_similarity import DOMAIN_SIMILARITY_THRESHOLD, similarity_percent
from .models import SignalResult, TrustedBrand


class BrandMatcher:
    """Flags hostnames that mention a trusted brand without being its domain."""

    def __init__(self, similarity_threshold: int = DOMAIN_SIMILARITY_THRESHOLD):
        self.similarity_threshold = similarity_threshold

    def match(
        self,
        hostname: str,
        root_domain: str,
        brands: Iterable[TrustedBrand],
    ) -> SignalResult:
        """Score a hostname/root-domain pair against every trusted brand.

        Each brand whose name appears in the hostname contributes on its own:
        a root domain close to (but not equal to) the official domain, and a
        root domain that is not the official one at all, are scored
        separately and may both fire.
        """
        hostname = (hostname or "").strip().lower()
        root_domain = (root_domain or "").strip().lower()
        if not hostname or not root_domain:
            return SignalResult()

        score = 0
        reasons: list[str] = []

        for brand in brands:
            brand_name = (brand.brand_name or "").strip().lower()
            official = (brand.official_domain or "").strip().lower()
            if not brand_name or not official:
                continue
            if brand_name not in hostname:
                continue
            if root_domain == official:
                continue

            if similarity_percent(root_domain, official) > self.similarity_threshold:
                score += BRAND_SIMILAR_DOMAIN_POINTS
                reasons.append(f"Brand impersonation risk for {brand_name} (similar domain)")

            if not root_domain.endswith(official):
                score += BRAND_SUBDOMAIN_ONLY_POINTS
                reasons.append(f"Brand only in subdomain for {brand_name}")

        return SignalResult(score_delta=score, reasons=tuple(reasons))

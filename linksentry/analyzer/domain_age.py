"""RDAP domain-age lookups.

Resolves the registration date of a root domain through an RDAP service and
scores young domains. Registration dates are cached by root domain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import quote

import httpx

from ..cache import CacheManager, create_domain_age_cache
from ..constants import (
    DOMAIN_AGE_NEW_DAYS,
    DOMAIN_AGE_NEW_POINTS,
    DOMAIN_AGE_RECENT_DAYS,
    DOMAIN_AGE_RECENT_POINTS,
    RDAP_BASE_URL,
    RDAP_REGISTRATION_EVENTS,
    RDAP_TIMEOUT_SECONDS,
    USER_AGENT,
)
from .models import SignalOutcome, SignalResult

logger = logging.getLogger(__name__)

CHECK_NAME = "domain_age"


@dataclass(frozen=True)
class RdapLookupResult:
    root_domain: str
    created_at: Optional[datetime]
    rdap_url: str
    error: Optional[str] = None
    status_code: Optional[int] = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.created_at is not None


def _parse_rdap_datetime(value: object) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_registration_date(data: object) -> Optional[datetime]:
    """Return the registration date from RDAP JSON (best-effort).

    Event actions are tried in order ("registration", "created",
    "registered"); the first action present decides, even if its date does
    not parse.
    """
    if not isinstance(data, dict):
        return None
    events = data.get("events")
    if not isinstance(events, list):
        return None

    for action in RDAP_REGISTRATION_EVENTS:
        for event in events:
            if not isinstance(event, dict):
                continue
            if str(event.get("eventAction") or "").strip().lower() != action:
                continue
            return _parse_rdap_datetime(event.get("eventDate"))
    return None


def score_domain_age(age_days: int) -> SignalResult:
    if age_days < DOMAIN_AGE_NEW_DAYS:
        return SignalResult(DOMAIN_AGE_NEW_POINTS, (f"New domain ({age_days} days old)",))
    if age_days < DOMAIN_AGE_RECENT_DAYS:
        return SignalResult(
            DOMAIN_AGE_RECENT_POINTS, (f"Recently created domain ({age_days} days old)",)
        )
    return SignalResult()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainAgeProber:
    """Scores root domains by registration age, caching RDAP answers."""

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        *,
        rdap_base_url: str = RDAP_BASE_URL,
        timeout: float = RDAP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.cache = cache if cache is not None else create_domain_age_cache()
        self.rdap_base_url = rdap_base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._clock = clock

    def rdap_url_for(self, root_domain: str) -> str:
        return f"{self.rdap_base_url}/{quote(root_domain, safe='')}"

    async def lookup(self, root_domain: str) -> RdapLookupResult:
        """Fetch (or read from cache) the registration date of a root domain."""
        normalized = (root_domain or "").strip().lower()
        rdap_url = self.rdap_url_for(normalized)
        if not normalized:
            return RdapLookupResult(
                root_domain=normalized,
                created_at=None,
                rdap_url=rdap_url,
                error="No domain provided for RDAP lookup",
            )

        fetched: list[RdapLookupResult] = []

        async def fetch_created_at() -> Optional[datetime]:
            result = await self._fetch_rdap(normalized, rdap_url)
            fetched.append(result)
            return result.created_at if result.ok else None

        created_at = await self.cache.get_or_fetch(normalized, fetch_created_at)
        if fetched:
            return fetched[0]
        return RdapLookupResult(
            root_domain=normalized,
            created_at=created_at,
            rdap_url=rdap_url,
            cached=True,
        )

    async def _fetch_rdap(self, root_domain: str, rdap_url: str) -> RdapLookupResult:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(
                    rdap_url,
                    headers={"User-Agent": USER_AGENT, "Accept": "application/rdap+json"},
                )
        except httpx.TimeoutException:
            return RdapLookupResult(
                root_domain=root_domain,
                created_at=None,
                rdap_url=rdap_url,
                error="RDAP lookup timed out",
            )
        except Exception as e:
            return RdapLookupResult(
                root_domain=root_domain,
                created_at=None,
                rdap_url=rdap_url,
                error=f"RDAP lookup failed: {e}",
            )

        if resp.status_code < 200 or resp.status_code >= 300:
            return RdapLookupResult(
                root_domain=root_domain,
                created_at=None,
                rdap_url=rdap_url,
                error=f"RDAP lookup failed ({resp.status_code})",
                status_code=int(resp.status_code),
            )

        try:
            data = resp.json()
        except ValueError:
            return RdapLookupResult(
                root_domain=root_domain,
                created_at=None,
                rdap_url=rdap_url,
                error="RDAP returned non-JSON response",
                status_code=int(resp.status_code),
            )

        created_at = parse_registration_date(data)
        if created_at is None:
            return RdapLookupResult(
                root_domain=root_domain,
                created_at=None,
                rdap_url=rdap_url,
                error="RDAP response has no usable registration event",
                status_code=int(resp.status_code),
            )

        return RdapLookupResult(
            root_domain=root_domain,
            created_at=created_at,
            rdap_url=rdap_url,
            status_code=int(resp.status_code),
        )

    async def probe(self, root_domain: str) -> SignalOutcome:
        """Score a root domain by age; lookup failures resolve as unavailable.

        Hosts without a registrable domain (IP literals) have no age to check.
        """
        if not (root_domain or "").strip():
            return SignalOutcome.ok(CHECK_NAME)
        try:
            result = await self.lookup(root_domain)
        except Exception as e:
            logger.debug(f"Domain age check failed for {root_domain}: {e}")
            return SignalOutcome.unavailable(CHECK_NAME, detail=str(e))

        if not result.ok:
            logger.debug(f"Domain age unavailable for {root_domain}: {result.error}")
            return SignalOutcome.unavailable(CHECK_NAME, detail=result.error or "")

        age_days = max(0, (self._clock() - result.created_at).days)
        return SignalOutcome.ok(CHECK_NAME, score_domain_age(age_days))

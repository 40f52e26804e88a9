"""Redirect chain tracing.

Follows ``Location`` headers hop by hop instead of relying on the HTTP
client's own redirect handling, so the hop count is exactly the number of
redirects taken.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

import aiohttp

from ..constants import (
    REDIRECT_CHAIN_MIN_HOPS,
    REDIRECT_CHAIN_POINTS,
    REDIRECT_MAX_HOPS,
    REDIRECT_STATUS_CODES,
    REDIRECT_TIMEOUT_SECONDS,
    USER_AGENT,
)
from .models import SignalOutcome, SignalResult

logger = logging.getLogger(__name__)

CHECK_NAME = "redirects"
REDIRECT_ERROR_REASON = "Error while checking redirects"


@dataclass
class RedirectChain:
    start_url: str
    final_url: str
    hops: list[dict] = field(default_factory=list)
    final_status: Optional[int] = None
    truncated: bool = False

    @property
    def hop_count(self) -> int:
        return len(self.hops)


class RedirectTracer:
    """Follows a URL's redirects up to a hop cap and scores long chains."""

    def __init__(
        self,
        max_hops: int = REDIRECT_MAX_HOPS,
        timeout: float = REDIRECT_TIMEOUT_SECONDS,
    ):
        self.max_hops = max_hops
        self.timeout = timeout

    async def follow(self, url: str) -> RedirectChain:
        """Walk the redirect chain within ``timeout`` seconds overall.

        Transport errors and ``asyncio.TimeoutError`` propagate to the caller.
        """
        return await asyncio.wait_for(self._walk(url), timeout=self.timeout)

    async def _walk(self, url: str) -> RedirectChain:
        chain = RedirectChain(start_url=url, final_url=url)
        current = url

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": USER_AGENT},
        ) as session:
            while True:
                async with session.get(current, allow_redirects=False) as resp:
                    status = resp.status
                    location = resp.headers.get("Location") or resp.headers.get("location")

                chain.final_status = status
                if status not in REDIRECT_STATUS_CODES or not location:
                    break
                if chain.hop_count >= self.max_hops:
                    chain.truncated = True
                    break

                next_url = urljoin(current, location)
                chain.hops.append({"status": status, "from_url": current, "to_url": next_url})
                current = next_url
                chain.final_url = current

        return chain

    async def trace(self, url: str) -> SignalOutcome:
        try:
            chain = await self.follow(url)
        except Exception as e:
            logger.debug(f"Redirect check failed for {url}: {e}")
            return SignalOutcome.unavailable(
                CHECK_NAME,
                detail=str(e) or type(e).__name__,
                reasons=(REDIRECT_ERROR_REASON,),
            )

        if chain.hop_count > REDIRECT_CHAIN_MIN_HOPS:
            return SignalOutcome.ok(
                CHECK_NAME,
                SignalResult(
                    REDIRECT_CHAIN_POINTS,
                    (f"Redirect chain length: {chain.hop_count}",),
                ),
            )
        return SignalOutcome.ok(CHECK_NAME)

"""Risk evaluation engine.

Runs every signal check against a URL, merges their scores and reasons,
classifies the total and hands the verdict to the persistence sink.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import replace
from typing import Any, Awaitable, Optional, Protocol

from ..constants import (
    CHECK_DEADLINE_GRACE_SECONDS,
    CONTEXT_EXTERNAL_LIKELY_POINTS,
    CONTEXT_POPUP_SPAM_POINTS,
    CONTEXT_REDIRECTED_POINTS,
    RISK_SCORE_CEILING,
    RiskStatus,
)
from ..utils.domains import extract_hostname, root_domain_for_host
from .brand import BrandMatcher
from .certificate import CHECK_NAME as CERTIFICATE_CHECK, CertificateProber
from .domain_age import CHECK_NAME as DOMAIN_AGE_CHECK, DomainAgeProber
from .errors import PersistenceError
from .lexical import LexicalAnalyzer
from .models import (
    EvaluationRequest,
    NavigationContext,
    SignalOutcome,
    SignalResult,
    TrustedBrand,
    UserId,
    Verdict,
)
from .redirects import CHECK_NAME as REDIRECTS_CHECK, REDIRECT_ERROR_REASON, RedirectTracer

logger = logging.getLogger(__name__)

BRAND_CHECK = "brand"
CONTEXT_CHECK = "context"
LEXICAL_CHECK = "lexical"


class BrandReader(Protocol):
    async def list_trusted_brands(self) -> list[TrustedBrand]: ...


class ResultSink(Protocol):
    async def log_result(self, user_id: UserId, url: str, total_score: int, status: str) -> int: ...

    async def add_reason(self, url_id: int, reason: str, score_added: int = 0) -> None: ...


def classify_score(total_score: int) -> RiskStatus:
    return RiskStatus.from_score(total_score)


def score_to_percent(total_score: int, ceiling: int = RISK_SCORE_CEILING) -> int:
    """Normalize an aggregate score onto 0-100 (half-up rounding)."""
    bounded = min(100, max(0, total_score))
    pct = math.floor(bounded * 100 / ceiling + 0.5)
    return max(0, min(100, pct))


def score_context(context: NavigationContext) -> SignalResult:
    score = 0
    reasons: list[str] = []
    if context.redirected:
        score += CONTEXT_REDIRECTED_POINTS
        reasons.append("Browser navigation shows redirect")
    if context.external_likely:
        score += CONTEXT_EXTERNAL_LIKELY_POINTS
        reasons.append("Likely opened from external app (no referrer)")
    if context.popup_spam:
        score += CONTEXT_POPUP_SPAM_POINTS
        reasons.append("Popup/new-tab spam behavior detected")
    return SignalResult(score_delta=score, reasons=tuple(reasons))


class RiskEngine:
    """Combines independent URL signals into a single verdict."""

    def __init__(
        self,
        brand_reader: BrandReader,
        *,
        sink: Optional[ResultSink] = None,
        lexical: Optional[LexicalAnalyzer] = None,
        brand_matcher: Optional[BrandMatcher] = None,
        age_prober: Optional[DomainAgeProber] = None,
        cert_prober: Optional[CertificateProber] = None,
        redirect_tracer: Optional[RedirectTracer] = None,
        grace_seconds: float = CHECK_DEADLINE_GRACE_SECONDS,
    ):
        self.brand_reader = brand_reader
        self.sink = sink
        self.lexical = lexical or LexicalAnalyzer()
        self.brand_matcher = brand_matcher or BrandMatcher()
        self.age_prober = age_prober or DomainAgeProber()
        self.cert_prober = cert_prober or CertificateProber()
        self.redirect_tracer = redirect_tracer or RedirectTracer()
        self.grace_seconds = grace_seconds

    async def evaluate(
        self,
        url: Any,
        user_id: UserId = None,
        context: Any = None,
    ) -> Verdict:
        """Validate, assess and persist one URL.

        Raises:
            InvalidRequestError: url missing or not absolute (no check runs)
            PersistenceError: verdict computed but the sink failed
        """
        request = EvaluationRequest.build(url, user_id=user_id, context=context)
        verdict = await self.assess(request)
        if self.sink is None:
            return verdict
        url_id = await self._persist(request, verdict)
        return replace(verdict, url_id=url_id)

    async def assess(self, request: EvaluationRequest) -> Verdict:
        """Run all checks concurrently and classify the merged result."""
        url = request.url
        hostname = extract_hostname(url)
        root = root_domain_for_host(hostname)

        brand_outcome, redirect_outcome, age_outcome, cert_outcome = await asyncio.gather(
            self._run_check(BRAND_CHECK, self._check_brand(hostname, root), None),
            self._run_check(
                REDIRECTS_CHECK,
                self.redirect_tracer.trace(url),
                self._deadline(self.redirect_tracer.timeout),
                fallback_reasons=(REDIRECT_ERROR_REASON,),
            ),
            self._run_check(
                DOMAIN_AGE_CHECK,
                self.age_prober.probe(root),
                self._deadline(self.age_prober.timeout),
            ),
            self._run_check(
                CERTIFICATE_CHECK,
                self.cert_prober.probe(url),
                self._deadline(self.cert_prober.timeout),
            ),
        )
        context_outcome = SignalOutcome.ok(CONTEXT_CHECK, score_context(request.context))
        lexical_outcome = SignalOutcome.ok(LEXICAL_CHECK, self.lexical.analyze(url))

        # Report order: brand, context, redirects, age, certificate, lexical.
        outcomes = (
            brand_outcome,
            context_outcome,
            redirect_outcome,
            age_outcome,
            cert_outcome,
            lexical_outcome,
        )
        return self._build_verdict(outcomes)

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            return None
        return timeout + self.grace_seconds

    async def _check_brand(self, hostname: str, root: str) -> SignalOutcome:
        if not hostname or not root:
            return SignalOutcome.ok(BRAND_CHECK)
        try:
            brands = await self.brand_reader.list_trusted_brands()
        except Exception as e:
            logger.warning("Trusted brand lookup failed: %s", e)
            return SignalOutcome.unavailable(BRAND_CHECK, detail=str(e))
        return SignalOutcome.ok(BRAND_CHECK, self.brand_matcher.match(hostname, root, brands))

    async def _run_check(
        self,
        name: str,
        check: Awaitable[SignalOutcome],
        timeout: Optional[float],
        fallback_reasons: tuple[str, ...] = (),
    ) -> SignalOutcome:
        """Await one check under a hard deadline; any failure becomes unavailable."""
        try:
            if timeout is None:
                return await check
            return await asyncio.wait_for(check, timeout=timeout)
        except asyncio.TimeoutError:
            logger.debug("Check %s exceeded %.1fs deadline", name, timeout)
            return SignalOutcome.unavailable(name, detail="timed out", reasons=fallback_reasons)
        except Exception as e:
            logger.debug("Check %s failed: %s", name, e)
            return SignalOutcome.unavailable(name, detail=str(e), reasons=fallback_reasons)

    @staticmethod
    def _build_verdict(outcomes: tuple[SignalOutcome, ...]) -> Verdict:
        merged = SignalResult()
        for outcome in outcomes:
            merged = merged + outcome.result

        total_score = max(0, merged.score_delta)
        risk_percent = score_to_percent(total_score)
        return Verdict(
            total_score=total_score,
            risk_percent=risk_percent,
            safety_percent=100 - risk_percent,
            status=classify_score(total_score),
            reasons=merged.reasons,
            checks=outcomes,
        )

    async def _persist(self, request: EvaluationRequest, verdict: Verdict) -> int:
        try:
            url_id = await self.sink.log_result(
                request.user_id,
                request.url,
                verdict.total_score,
                verdict.status.value,
            )
            for reason in verdict.reasons:
                await self.sink.add_reason(url_id, reason, 0)
        except Exception as e:
            logger.error("Failed to record verdict for %s: %s", request.url, e)
            raise PersistenceError(f"Failed to record verdict: {e}", verdict=verdict) from e
        return url_id

"""Signal checks and the risk evaluation engine."""

from .brand import BrandMatcher
from .certificate import CertificateProber
from .domain_age import DomainAgeProber
from .engine import RiskEngine, classify_score, score_to_percent
from .errors import InvalidRequestError, LinkSentryError, PersistenceError
from .lexical import LexicalAnalyzer
from .models import (
    CheckStatus,
    EvaluationRequest,
    NavigationContext,
    SignalOutcome,
    SignalResult,
    TrustedBrand,
    Verdict,
)
from .redirects import RedirectTracer

__all__ = [
    "BrandMatcher",
    "CertificateProber",
    "CheckStatus",
    "DomainAgeProber",
    "EvaluationRequest",
    "InvalidRequestError",
    "LexicalAnalyzer",
    "LinkSentryError",
    "NavigationContext",
    "PersistenceError",
    "RedirectTracer",
    "RiskEngine",
    "SignalOutcome",
    "SignalResult",
    "TrustedBrand",
    "Verdict",
    "classify_score",
    "score_to_percent",
]

"""Data models shared by the signal checks and the risk engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

from ..constants import RiskStatus
from ..utils.domains import parse_absolute_url
from .errors import InvalidRequestError

UserId = Union[int, str, None]


class CheckStatus(str, Enum):
    """Whether a signal check ran to completion."""

    OK = "ok"  # Checked; the score reflects what was found
    UNAVAILABLE = "unavailable"  # Could not check (network, timeout, bad data)


@dataclass(frozen=True)
class SignalResult:
    """Score delta and human-readable reasons from one signal check."""

    score_delta: int = 0
    reasons: tuple[str, ...] = ()

    def __post_init__(self):
        if self.score_delta < 0:
            raise ValueError("score_delta must be non-negative")
        object.__setattr__(self, "reasons", tuple(self.reasons))

    def __add__(self, other: "SignalResult") -> "SignalResult":
        return SignalResult(
            score_delta=self.score_delta + other.score_delta,
            reasons=self.reasons + other.reasons,
        )


@dataclass(frozen=True)
class SignalOutcome:
    """A named check's result, distinguishing "found nothing" from "could not check"."""

    check: str
    status: CheckStatus
    result: SignalResult = field(default_factory=SignalResult)
    detail: str = ""

    @classmethod
    def ok(cls, check: str, result: Optional[SignalResult] = None) -> "SignalOutcome":
        return cls(check=check, status=CheckStatus.OK, result=result or SignalResult())

    @classmethod
    def unavailable(
        cls,
        check: str,
        detail: str = "",
        reasons: tuple[str, ...] = (),
    ) -> "SignalOutcome":
        """Zero-score fallback; may still carry reasons to report."""
        return cls(
            check=check,
            status=CheckStatus.UNAVAILABLE,
            result=SignalResult(score_delta=0, reasons=reasons),
            detail=detail,
        )

    @property
    def available(self) -> bool:
        return self.status is CheckStatus.OK

    @property
    def score_delta(self) -> int:
        return self.result.score_delta

    @property
    def reasons(self) -> tuple[str, ...]:
        return self.result.reasons


_TRUTHY_STRINGS = {"1", "true", "yes", "on"}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return bool(value)


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class NavigationContext:
    """Client-side navigation hints sent along with a URL."""

    redirected: bool = False
    external_likely: bool = False
    popup_spam: bool = False
    transition_type: str = ""
    transition_qualifiers: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Any) -> "NavigationContext":
        """Build a context from a JSON object, accepting camelCase or snake_case keys."""
        if isinstance(data, NavigationContext):
            return data
        if not isinstance(data, Mapping):
            return cls()

        qualifiers = _pick(data, "transitionQualifiers", "transition_qualifiers")
        if isinstance(qualifiers, (list, tuple)):
            qualifiers = tuple(str(q) for q in qualifiers if q is not None)
        else:
            qualifiers = ()

        transition_type = _pick(data, "transitionType", "transition_type")

        return cls(
            redirected=_coerce_bool(_pick(data, "redirected")),
            external_likely=_coerce_bool(_pick(data, "externalLikely", "external_likely")),
            popup_spam=_coerce_bool(_pick(data, "popupSpam", "popup_spam")),
            transition_type=str(transition_type) if transition_type is not None else "",
            transition_qualifiers=qualifiers,
        )


@dataclass(frozen=True)
class TrustedBrand:
    brand_name: str
    official_domain: str


@dataclass(frozen=True)
class EvaluationRequest:
    """A URL to evaluate, who asked, and how the browser got there."""

    url: str
    user_id: UserId = None
    context: NavigationContext = field(default_factory=NavigationContext)

    @classmethod
    def build(cls, url: Any, user_id: UserId = None, context: Any = None) -> "EvaluationRequest":
        """Validate inputs and build a request.

        Raises:
            InvalidRequestError: url is missing or not an absolute URL with a hostname
        """
        if url is None or (isinstance(url, str) and not url.strip()):
            raise InvalidRequestError("url is required")
        if parse_absolute_url(url) is None:
            raise InvalidRequestError("url must be an absolute URL with a scheme and hostname")
        return cls(
            url=url.strip(),
            user_id=user_id,
            context=NavigationContext.from_mapping(context),
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "EvaluationRequest":
        """Build a request from a decoded JSON body ``{url, userId, context}``."""
        if not isinstance(payload, Mapping):
            raise InvalidRequestError("request body must be a JSON object")
        return cls.build(
            payload.get("url"),
            user_id=_pick(payload, "userId", "user_id"),
            context=payload.get("context"),
        )


@dataclass(frozen=True)
class Verdict:
    """Final classification of one evaluated URL."""

    total_score: int
    risk_percent: int
    safety_percent: int
    status: RiskStatus
    reasons: tuple[str, ...] = ()
    checks: tuple[SignalOutcome, ...] = ()
    url_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "urlId": self.url_id,
            "totalScore": self.total_score,
            "riskPercent": self.risk_percent,
            "safetyPercent": self.safety_percent,
            "status": self.status.value,
            "reasons": list(self.reasons),
            "checks": {outcome.check: outcome.status.value for outcome in self.checks},
        }

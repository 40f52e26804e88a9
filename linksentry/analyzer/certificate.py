"""TLS certificate inspection: expiry and hostname match."""

from __future__ import annotations

import asyncio
import logging
import socket
import ssl
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..constants import (
    TLS_EXPIRED_POINTS,
    TLS_HOSTNAME_MISMATCH_POINTS,
    TLS_PORT,
    TLS_TIMEOUT_SECONDS,
)
from ..utils.domains import parse_absolute_url
from .models import SignalOutcome, SignalResult

logger = logging.getLogger(__name__)

CHECK_NAME = "certificate"


@dataclass
class CertificateInfo:
    """The parts of a peer certificate the prober judges."""

    common_name: str = ""
    san_domains: list[str] = field(default_factory=list)
    not_after: Optional[datetime] = None

    @classmethod
    def from_der(cls, der: bytes) -> "CertificateInfo":
        cert = x509.load_der_x509_certificate(der)

        common_name = ""
        cn_attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        if cn_attrs:
            common_name = str(cn_attrs[0].value)

        try:
            san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
            san_domains = list(san.value.get_values_for_type(x509.DNSName))
        except x509.ExtensionNotFound:
            san_domains = []

        return cls(
            common_name=common_name,
            san_domains=san_domains,
            not_after=cert.not_valid_after_utc,
        )

    def matches_hostname(self, hostname: str) -> bool:
        """Loose name check: SAN contains the host, CN equals it, or a CN wildcard covers it."""
        host = (hostname or "").lower()
        if not host:
            return True

        if any(host in name.lower() for name in self.san_domains):
            return True

        cn = self.common_name.lower()
        if cn == host:
            return True
        if cn.startswith("*."):
            suffix = cn[1:]
            if host.endswith(suffix):
                return True
        return False


def inspect_certificate(info: CertificateInfo, hostname: str, now: datetime) -> SignalResult:
    score = 0
    reasons: list[str] = []

    if info.not_after is not None and info.not_after < now:
        score += TLS_EXPIRED_POINTS
        reasons.append("TLS certificate expired")

    if not info.matches_hostname(hostname):
        score += TLS_HOSTNAME_MISMATCH_POINTS
        reasons.append("TLS certificate hostname mismatch")

    return SignalResult(score_delta=score, reasons=tuple(reasons))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CertificateProber:
    """Opens a TLS handshake to a host and scores its certificate."""

    def __init__(
        self,
        timeout: float = TLS_TIMEOUT_SECONDS,
        port: int = TLS_PORT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.timeout = timeout
        self.port = port
        self._clock = clock

    @staticmethod
    def _create_context() -> ssl.SSLContext:
        # Chain trust is out of scope; expired or mismatched certificates must
        # still complete the handshake so they can be inspected.
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    def _fetch_certificate(self, hostname: str) -> Optional[bytes]:
        """Fetch the peer certificate in DER form (run in executor)."""
        context = self._create_context()
        with socket.create_connection((hostname, self.port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=hostname) as ssock:
                return ssock.getpeercert(binary_form=True)

    async def probe(self, url: str) -> SignalOutcome:
        """Score the certificate served for an https URL."""
        parsed = parse_absolute_url(url)
        if parsed is None or parsed.scheme.lower() != "https":
            return SignalOutcome.ok(CHECK_NAME)
        hostname = (parsed.hostname or "").strip(".").lower()
        if not hostname:
            return SignalOutcome.ok(CHECK_NAME)

        loop = asyncio.get_running_loop()
        try:
            der = await loop.run_in_executor(None, self._fetch_certificate, hostname)
        except Exception as e:
            logger.debug(f"TLS handshake failed for {hostname}: {e}")
            return SignalOutcome.unavailable(CHECK_NAME, detail=str(e) or type(e).__name__)

        if not der:
            return SignalOutcome.unavailable(CHECK_NAME, detail="No peer certificate")

        try:
            info = CertificateInfo.from_der(der)
        except Exception as e:
            logger.debug(f"Failed to parse certificate for {hostname}: {e}")
            return SignalOutcome.unavailable(CHECK_NAME, detail=f"Unparseable certificate: {e}")

        return SignalOutcome.ok(CHECK_NAME, inspect_certificate(info, hostname, self._clock()))

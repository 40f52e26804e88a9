"""Domain normalization utilities."""

from __future__ import annotations

import ipaddress
import re
from typing import Optional
from urllib.parse import SplitResult, urlsplit

import tldextract

# Bundled public suffix snapshot only; never fetch the live list at runtime.
_extract = tldextract.TLDExtract(suffix_list_urls=(), cache_dir=None)

# Browsers resolve decimal, short and zero-padded IPv4 forms as addresses too.
_NUMERIC_HOST = re.compile(r"[0-9]+(?:\.[0-9]*)*")


def parse_absolute_url(value: object) -> Optional[SplitResult]:
    """Parse a URL that carries both a scheme and a hostname, else None."""
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        parsed = urlsplit(raw)
        host = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not host:
        return None
    return parsed


def extract_hostname(url: str) -> str:
    """Return the lower-cased hostname of an absolute URL ("" if unparseable)."""
    parsed = parse_absolute_url(url)
    if parsed is None:
        return ""
    return (parsed.hostname or "").strip(".").lower()


def is_ip_host(host: str) -> bool:
    """True for IPv4/IPv6 literals and any all-digits-and-dots hostname."""
    candidate = (host or "").strip("[]")
    if not candidate:
        return False
    if _NUMERIC_HOST.fullmatch(candidate):
        return True
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return False
    return True


def root_domain_for_host(host: str) -> str:
    """Return the registrable domain for a hostname.

    IP literals have no registrable domain and yield "". Hosts the public
    suffix list does not recognise fall back to their last two labels.
    """
    host = (host or "").strip().strip(".").lower()
    if not host or is_ip_host(host):
        return ""

    extracted = _extract(host)
    if extracted.domain and extracted.suffix:
        return f"{extracted.domain}.{extracted.suffix}"

    labels = [label for label in host.split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    return ".".join(labels[-2:])


def root_domain(url: str) -> str:
    """Return the registrable domain for an absolute URL."""
    return root_domain_for_host(extract_hostname(url))

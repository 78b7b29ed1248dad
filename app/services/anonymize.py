"""
Visitor anonymization.

A fingerprint is the SHA-256 of the client address and user agent. Both
fields are length-prefixed, so ("a", "bc") and ("ab", "c") hash different
inputs. Only the digest is ever stored.
"""
import hashlib
from typing import Mapping, Optional

UNKNOWN_ADDRESS = "unknown"

# Checked in order; the first non-empty value wins
ADDRESS_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def fingerprint(address: str, user_agent: str) -> str:
    """Deterministic, non-reversible visitor digest (64 hex chars)"""
    if not isinstance(address, str) or not isinstance(user_agent, str):
        raise TypeError("address and user_agent must be str")
    payload = f"{len(address)}:{address}\x1f{len(user_agent)}:{user_agent}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def client_address(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    """Best-effort client address; never raises"""
    for name in ADDRESS_HEADERS:
        value = headers.get(name) if headers is not None else None
        if value:
            # X-Forwarded-For is "client, proxy1, proxy2"
            first = value.split(",")[0].strip()
            if first:
                return first
    if peer:
        return peer
    return UNKNOWN_ADDRESS

"""Pseudonymous visitor identity derived from the request fingerprint.

The visitor id is the join key across every tracking table. It needs no
cookie: the same IP + user-agent pair always hashes to the same id.
"""

import hashlib
import secrets

VISITOR_ID_LENGTH = 32


def client_ip(forwarded_for: str | None, fallback: str) -> str:
    """First address of an ``x-forwarded-for`` chain, else ``fallback``.

    Requests without the header all share the fallback address and therefore
    one synthetic identity.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return fallback


def resolve_visitor_id(ip: str, user_agent: str) -> str:
    """sha256(f"{ip}-{user_agent}") truncated to 32 hex characters."""
    digest = hashlib.sha256(f"{ip}-{user_agent}".encode("utf-8")).hexdigest()
    return digest[:VISITOR_ID_LENGTH]


def generate_session_id() -> str:
    """16 random bytes, hex-encoded."""
    return secrets.token_hex(16)

"""Identifier helpers."""

import uuid


def generate_id(prefix: str) -> str:
    """Generate a short prefixed identifier, e.g. 'req_3f2a9c1d0b7e'."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def generate_request_id() -> str:
    """Generate an ID for an inbound HTTP request."""
    return generate_id("req")

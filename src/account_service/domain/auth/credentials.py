"""Shared normalization and policy helpers for user credential inputs."""

from __future__ import annotations

import re


def normalize_username(*, username: str) -> str:
    """Strip surrounding whitespace from one username and reject blank values."""

    normalized = username.strip()
    if not normalized:
        raise ValueError("username cannot be blank")
    return normalized


def password_contains_username(*, username: str, password: str) -> bool:
    """Return whether the password embeds the username, ignoring case."""

    if not username.strip():
        return False
    return username.strip().lower() in password.lower()


def password_matches_policy(*, password: str, pattern: str) -> bool:
    """Return whether a plaintext password satisfies the configured regex policy."""

    return re.fullmatch(pattern, password) is not None

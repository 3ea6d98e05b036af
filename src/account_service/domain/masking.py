"""Masking helpers for contact details echoed back to clients."""

from __future__ import annotations


def mask_string(value: str | None, *, percent: int) -> str:
    """Replace the leading `percent` share of characters with `*`."""

    if not value:
        return ""
    bounded = min(max(percent, 0), 100)
    masked_count = (len(value) * bounded) // 100
    return "*" * masked_count + value[masked_count:]

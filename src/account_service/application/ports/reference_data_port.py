"""Port for company and country reference data."""

from __future__ import annotations

from typing import Protocol


class ReferenceDataPort(Protocol):
    """Reference data lookup contract; codes compare case-insensitively."""

    async def company_exists(self, *, code: str) -> bool:
        """Return whether the company code is known."""

    async def country_exists(self, *, code: str) -> bool:
        """Return whether the country code is known."""

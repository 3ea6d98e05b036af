"""Port for the external (SAP) distributor account directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class AccountDirectoryUnavailableError(RuntimeError):
    """Raised when the directory cannot be reached or times out."""


@dataclass(frozen=True)
class AccountDescriptor:
    """Distributor account as reported by the external directory."""

    account_number: str
    distributor_name: str
    email: str | None
    phone: str | None
    account_type: str | None
    status_name: str
    status_code: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status_name.strip().lower() != "inactive"

    @property
    def is_complete(self) -> bool:
        return all(
            value is not None and value.strip()
            for value in (self.email, self.phone, self.account_type)
        )


class AccountDirectoryPort(Protocol):
    """External account lookup contract."""

    async def find_account(
        self,
        *,
        company_code: str,
        country_code: str,
        account_number: str,
    ) -> AccountDescriptor | None:
        """Return the account, None when unknown, or raise when unreachable."""

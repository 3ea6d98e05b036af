"""Distributor account types and SAP name/code resolution."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class AccountType(StrEnum):
    """Account types stored on linked distributor accounts (value is the code)."""

    BANK_GUARANTEE = "BG"
    CLEAN_CREDIT_CUSTOMER = "CC"
    CASH_CUSTOMER = "CS"


ACCOUNT_TYPE_NAMES: Final[dict[AccountType, str]] = {
    AccountType.BANK_GUARANTEE: "Bank Guarantee",
    AccountType.CLEAN_CREDIT_CUSTOMER: "Clean Credit Customer",
    AccountType.CASH_CUSTOMER: "Cash Customer",
}

# SAP reports bank guarantee distributors under a customer-suffixed name.
_SAP_ALIASES: Final[dict[str, AccountType]] = {
    "bank guarantee customer": AccountType.BANK_GUARANTEE,
}


def resolve_account_type(value: str | None) -> AccountType | None:
    """Resolve an SAP account type name or code, or None when unknown."""

    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        return None
    for account_type, name in ACCOUNT_TYPE_NAMES.items():
        if normalized in {account_type.value.lower(), name.lower()}:
            return account_type
    return _SAP_ALIASES.get(normalized)

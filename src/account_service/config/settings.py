"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]

DEFAULT_PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z\d]).{8,}$"


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    redis_url: NonEmptyStr | None = Field(default=None, validation_alias="REDIS_URL")

    jwt_secret_key: NonEmptyStr = Field(validation_alias="JWT_SECRET_KEY")
    jwt_issuer: NonEmptyStr = Field(default="account-service", validation_alias="JWT_ISSUER")
    jwt_audience: NonEmptyStr = Field(
        default="account-service-clients",
        validation_alias="JWT_AUDIENCE",
    )
    jwt_duration_minutes: PositiveInt = Field(default=60, validation_alias="JWT_DURATION_MINUTES")

    password_attempted_tries: PositiveInt = Field(
        default=5,
        validation_alias="PASSWORD_ATTEMPTED_TRIES",
    )
    password_lockout_window_seconds: PositiveInt = Field(
        default=300,
        validation_alias="PASSWORD_LOCKOUT_WINDOW_SECONDS",
    )
    password_regex_pattern: NonEmptyStr = Field(
        default=DEFAULT_PASSWORD_PATTERN,
        validation_alias="PASSWORD_REGEX_PATTERN",
    )
    password_expiry_days: PositiveInt = Field(default=90, validation_alias="PASSWORD_EXPIRY_DAYS")
    password_recycle_limit: PositiveInt = Field(
        default=5,
        validation_alias="PASSWORD_RECYCLE_LIMIT",
    )
    reset_token_length: PositiveInt = Field(default=32, validation_alias="RESET_TOKEN_LENGTH")
    reset_token_expiry_minutes: PositiveInt = Field(
        default=30,
        validation_alias="RESET_TOKEN_EXPIRY_MINUTES",
    )
    default_role_name: NonEmptyStr = Field(
        default="Distributor",
        validation_alias="DEFAULT_ROLE_NAME",
    )

    otp_size: Annotated[int, Field(ge=4, le=12)] = Field(default=6, validation_alias="OTP_SIZE")
    otp_expiry_seconds: PositiveInt = Field(default=300, validation_alias="OTP_EXPIRY_SECONDS")
    account_link_ttl_seconds: PositiveInt = Field(
        default=1800,
        validation_alias="ACCOUNT_LINK_TTL_SECONDS",
    )
    registration_ttl_seconds: PositiveInt = Field(
        default=1800,
        validation_alias="REGISTRATION_TTL_SECONDS",
    )
    account_expiry_interval_seconds: PositiveInt = Field(
        default=3600,
        validation_alias="ACCOUNT_EXPIRY_INTERVAL_SECONDS",
    )

    sap_base_url: HttpUrl = Field(validation_alias="SAP_BASE_URL")
    sap_find_customer_endpoint: NonEmptyStr = Field(
        default="customers/{companyCode}/{countryCode}/{distributorNumber}",
        validation_alias="SAP_FIND_CUSTOMER_ENDPOINT",
    )
    sap_username: str | None = Field(default=None, validation_alias="SAP_USERNAME")
    sap_password: str | None = Field(default=None, validation_alias="SAP_PASSWORD")
    sap_timeout_seconds: NonNegativeFloat = Field(
        default=15.0,
        validation_alias="SAP_TIMEOUT_SECONDS",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]

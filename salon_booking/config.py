"""
Centralized configuration with environment variable overrides.

Salon identity, booking defaults, and commerce constants (VAT, shipping
threshold) are configurable here. Nothing is hardcoded in the slot engine,
reservation, or cart/order logic.
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_decimal(env_var: str, default: str) -> Decimal:
    """Parse a decimal from an env var. Money maths never goes through float."""
    raw = os.getenv(env_var, default)
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValueError(
            f"Invalid decimal for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SalonConfig:
    """Salon identity and locale."""

    name: str = os.getenv("SALON_NAME", "SCHNITTWERK")
    timezone: str = os.getenv("SALON_TIMEZONE", "Europe/Zurich")
    currency: str = os.getenv("SALON_CURRENCY", "CHF")
    locale: str = os.getenv("SALON_LOCALE", "de-CH")


@dataclass(frozen=True)
class BookingConfig:
    """Default booking rules and reservation hold settings."""

    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "15")
    lead_time_minutes: int = _safe_int("LEAD_TIME_MINUTES", "60")
    horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "90")
    buffer_between_minutes: int = _safe_int("BUFFER_BETWEEN_MINUTES", "0")
    cancellation_deadline_hours: int = _safe_int("CANCELLATION_DEADLINE_HOURS", "24")
    reservation_timeout_minutes: int = _safe_int("RESERVATION_TIMEOUT_MINUTES", "10")
    max_reservations_per_session: int = _safe_int("MAX_RESERVATIONS_PER_SESSION", "1")


@dataclass(frozen=True)
class CommerceConfig:
    """Swiss VAT rates, shipping threshold, and cart lifetime."""

    vat_rate: Decimal = _safe_decimal("VAT_RATE", "0.081")
    vat_rate_reduced: Decimal = _safe_decimal("VAT_RATE_REDUCED", "0.026")
    free_shipping_threshold_cents: int = _safe_int("FREE_SHIPPING_THRESHOLD_CENTS", "5000")
    cart_lifetime_days: int = _safe_int("CART_LIFETIME_DAYS", "7")
    order_number_prefix: str = os.getenv("ORDER_NUMBER_PREFIX", "SW")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    salon: SalonConfig = field(default_factory=SalonConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    commerce: CommerceConfig = field(default_factory=CommerceConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        ZoneInfo(config.salon.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"SALON_TIMEZONE must be a valid IANA timezone, got {config.salon.timezone!r}"
        ) from None

    if config.booking.slot_granularity_minutes < 1:
        raise ValueError(
            "SLOT_GRANULARITY_MINUTES must be >= 1, "
            f"got {config.booking.slot_granularity_minutes}"
        )
    if config.booking.reservation_timeout_minutes < 1:
        raise ValueError(
            "RESERVATION_TIMEOUT_MINUTES must be >= 1, "
            f"got {config.booking.reservation_timeout_minutes}"
        )
    if config.booking.max_reservations_per_session < 1:
        raise ValueError(
            "MAX_RESERVATIONS_PER_SESSION must be >= 1, "
            f"got {config.booking.max_reservations_per_session}"
        )

    for name, value in [
        ("LEAD_TIME_MINUTES", config.booking.lead_time_minutes),
        ("BOOKING_HORIZON_DAYS", config.booking.horizon_days),
        ("BUFFER_BETWEEN_MINUTES", config.booking.buffer_between_minutes),
        ("CANCELLATION_DEADLINE_HOURS", config.booking.cancellation_deadline_hours),
        ("FREE_SHIPPING_THRESHOLD_CENTS", config.commerce.free_shipping_threshold_cents),
    ]:
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")

    for rate_name, rate_value in [
        ("VAT_RATE", config.commerce.vat_rate),
        ("VAT_RATE_REDUCED", config.commerce.vat_rate_reduced),
    ]:
        if not Decimal("0") <= rate_value < Decimal("1"):
            raise ValueError(f"{rate_name} must be between 0 and 1, got {rate_value}")

    if config.commerce.cart_lifetime_days < 1:
        raise ValueError(
            f"CART_LIFETIME_DAYS must be >= 1, got {config.commerce.cart_lifetime_days}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.salon.name)
    return config


# Singleton instance
settings = load_config()

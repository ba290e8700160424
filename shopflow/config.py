"""
Configuration — explicit settings objects injected into every component.

Nothing below the entry point reads the process environment: the entry
point builds ``Settings.from_env(os.environ)`` once and hands the pieces to
the constructors that need them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

DEFAULT_ORIGIN_ADDRESS = "Số 12 Nguyễn Văn Bảo, Phường 4, Gò Vấp, Thành phố Hồ Chí Minh"

PAYPAL_SANDBOX_URL = "https://api-m.sandbox.paypal.com"
PAYPAL_LIVE_URL = "https://api-m.paypal.com"


# ═══════════════════════════════════════════════════════════════════════════════
# Sections
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Tariff:
    """Distance-based shipping tariff, in VND."""

    origin_address: str = DEFAULT_ORIGIN_ADDRESS
    first_tier_fee: int = 15_000
    per_km_rate: int = 2_000
    rounding_unit: int = 1_000
    return_multiplier: Decimal = Decimal("1.5")


@dataclass(frozen=True, slots=True)
class GoongSettings:
    api_key: str = ""
    geocode_url: str = "https://rsapi.goong.io/Geocode"
    distance_url: str = "https://rsapi.goong.io/DistanceMatrix"
    vehicle: str = "car"


@dataclass(frozen=True, slots=True)
class PayPalSettings:
    client_id: str = ""
    client_secret: str = ""
    base_url: str = PAYPAL_SANDBOX_URL
    currency: str = "USD"
    # VND per one unit of the settlement currency
    exchange_rate: Decimal = Decimal(23_000)
    brand_name: str = "shopflow"


@dataclass(frozen=True, slots=True)
class FrontendSettings:
    """Where the browser lands after a gateway callback."""

    base_url: str = "http://localhost:5173"

    def checkout_success(self, order_id: str) -> str:
        return f"{self.base_url}/checkout/success?orderId={order_id}"

    def already_processed(self, order_id: str) -> str:
        return f"{self.base_url}/order-details/{order_id}?status=already_processed"

    def payment_error(self, reason: str, order_id: str | None) -> str:
        return f"{self.base_url}/payment/error?message={reason}&orderId={order_id or 'unknown'}"

    def payment_cancelled(self, order_id: str | None) -> str:
        if not order_id:
            return f"{self.base_url}/payment/cancel"
        return f"{self.base_url}/payment/cancel?orderId={order_id}"


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str = "sqlite+aiosqlite:///shopflow.db"
    tariff: Tariff = field(default_factory=Tariff)
    goong: GoongSettings = field(default_factory=GoongSettings)
    paypal: PayPalSettings = field(default_factory=PayPalSettings)
    frontend: FrontendSettings = field(default_factory=FrontendSettings)
    # Overrides the request host when building gateway callback URLs
    public_base_url: str | None = None
    # bearer token -> user id
    api_tokens: Mapping[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> Settings:
        """Build settings from an explicit mapping (usually ``os.environ``)."""
        defaults = cls()
        mode = env.get("PAYPAL_MODE", "sandbox").lower()
        return cls(
            database_url=env.get("SHOPFLOW_DATABASE_URL", defaults.database_url),
            tariff=Tariff(
                origin_address=env.get("SHOPFLOW_ORIGIN_ADDRESS", DEFAULT_ORIGIN_ADDRESS),
                first_tier_fee=int(env.get("SHOPFLOW_FIRST_TIER_FEE", 15_000)),
                per_km_rate=int(env.get("SHOPFLOW_PER_KM_RATE", 2_000)),
            ),
            goong=GoongSettings(api_key=env.get("GOONG_API_KEY", "")),
            paypal=PayPalSettings(
                client_id=env.get("PAYPAL_CLIENT_ID", ""),
                client_secret=env.get("PAYPAL_CLIENT_SECRET", ""),
                base_url=PAYPAL_LIVE_URL if mode == "live" else PAYPAL_SANDBOX_URL,
                exchange_rate=Decimal(env.get("PAYPAL_EXCHANGE_RATE", "23000")),
                brand_name=env.get("PAYPAL_BRAND_NAME", "shopflow"),
            ),
            frontend=FrontendSettings(
                base_url=env.get("SHOPFLOW_FRONTEND_URL", FrontendSettings().base_url).rstrip("/"),
            ),
            public_base_url=env.get("SHOPFLOW_PUBLIC_BASE_URL") or None,
            api_tokens=parse_tokens(env.get("SHOPFLOW_API_TOKENS", "")),
            log_level=env.get("SHOPFLOW_LOG_LEVEL", "INFO").upper(),
            host=env.get("SHOPFLOW_HOST", defaults.host),
            port=int(env.get("SHOPFLOW_PORT", defaults.port)),
        )


def parse_tokens(raw: str) -> dict[str, str]:
    """``"tok1:user1, tok2:user2"`` -> ``{"tok1": "user1", "tok2": "user2"}``."""
    tokens: dict[str, str] = {}
    for pair in raw.split(","):
        token, sep, user_id = pair.strip().partition(":")
        if sep and token and user_id:
            tokens[token] = user_id
    return tokens


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


__all__ = (
    "DEFAULT_ORIGIN_ADDRESS",
    "PAYPAL_SANDBOX_URL",
    "PAYPAL_LIVE_URL",
    "Tariff",
    "GoongSettings",
    "PayPalSettings",
    "FrontendSettings",
    "Settings",
    "parse_tokens",
    "configure_logging",
)

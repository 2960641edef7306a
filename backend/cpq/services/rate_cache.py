"""
Process-wide cache of the team's pricing settings (exchange rates and quotation
defaults).

The cache is refreshed out of band (settings save or the refresh route in
settings_routes) and only read by the engine when a caller does not pass
explicit rates. A missing or broken cache falls back to the settings'
fallback rates instead of failing.
"""
import logging
import threading
from typing import Any, Dict, Optional, Protocol

from cpq.config import get_settings
from cpq.models.domain import ExchangeRates, QuotationParameters, RatioMarkup

logger = logging.getLogger("cpq-pricing")

# Quotation defaults for a fresh team with no saved pricing settings.
# The exchange-rate defaults come from settings (FALLBACK_*_TO_ILS).
DEFAULT_PRICING: Dict[str, Any] = {
    "default_markup": 0.75,        # cost-to-price ratio
    "day_work_cost": 1200.0,
    "default_risk": 10.0,
    "vat_rate": 17.0,
    "delivery_time": "4-6 weeks",
    "payment_terms": "30 days from invoice",
}


def fallback_exchange_rates() -> ExchangeRates:
    settings = get_settings()
    return ExchangeRates(settings.fallback_usd_to_ils, settings.fallback_eur_to_ils)


def default_pricing() -> Dict[str, Any]:
    fallback = fallback_exchange_rates()
    return {
        "usd_to_ils_rate": fallback.usd_to_ils_rate,
        "eur_to_ils_rate": fallback.eur_to_ils_rate,
        **DEFAULT_PRICING,
    }


class RateSource(Protocol):
    def get_global_exchange_rates(self) -> ExchangeRates:
        ...


class ExchangeRateCache:
    """Thread-safe holder for the last loaded pricing settings."""

    def __init__(self, pricing: Optional[Dict[str, Any]] = None):
        self._lock = threading.Lock()
        self._pricing: Optional[Dict[str, Any]] = dict(pricing) if pricing else None

    def update(self, pricing: Dict[str, Any]) -> None:
        with self._lock:
            self._pricing = dict(pricing)
        logger.info(
            "Pricing cache updated: USD/ILS=%s EUR/ILS=%s",
            pricing.get("usd_to_ils_rate"), pricing.get("eur_to_ils_rate"),
        )

    def clear(self) -> None:
        with self._lock:
            self._pricing = None

    def pricing(self) -> Dict[str, Any]:
        """Cached pricing merged over default_pricing() (missing keys fall back)."""
        with self._lock:
            cached = dict(self._pricing) if self._pricing else {}
        merged = default_pricing()
        merged.update({k: v for k, v in cached.items() if v is not None})
        return merged

    def get_global_exchange_rates(self) -> ExchangeRates:
        pricing = self.pricing()
        try:
            return ExchangeRates(
                usd_to_ils_rate=float(pricing["usd_to_ils_rate"]),
                eur_to_ils_rate=float(pricing["eur_to_ils_rate"]),
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid cached exchange rates, using fallback: {e}")
            return fallback_exchange_rates()

    async def refresh_from_db(self, session, team_id: str) -> bool:
        """Load the team's PricingSettings row. Returns False when none exists."""
        from sqlalchemy import select
        from cpq.models.orm_models import PricingSettings

        result = await session.execute(
            select(PricingSettings).where(PricingSettings.team_id == team_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            logger.warning(f"No pricing settings for team {team_id}; keeping fallback rates")
            return False
        self.update(row.as_pricing_dict())
        return True


rate_cache = ExchangeRateCache()


def get_global_exchange_rates() -> ExchangeRates:
    return rate_cache.get_global_exchange_rates()


def default_quotation_parameters(source: Optional[ExchangeRateCache] = None) -> QuotationParameters:
    """QuotationParameters for a new quotation, from cached team settings."""
    pricing = (source or rate_cache).pricing()
    return QuotationParameters(
        rates=(source or rate_cache).get_global_exchange_rates(),
        markup=RatioMarkup(float(pricing["default_markup"])),
        day_work_cost=float(pricing["day_work_cost"]),
        risk_percent=float(pricing["default_risk"]),
        include_vat=True,
        vat_rate=float(pricing["vat_rate"]),
        payment_terms=str(pricing["payment_terms"]),
        delivery_time=str(pricing["delivery_time"]),
    )

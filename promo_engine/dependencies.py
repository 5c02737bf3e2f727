from datetime import datetime, timezone
from fastapi import Request

from promo_engine import config
from promo_engine.services.cache import DefinitionCache
from promo_engine.services.cart_pricing import DeliveryRule
from promo_engine.services.coupon_validator import RestrictionMode


def get_now() -> datetime:
    """Clock for offer windows; overridden in tests."""
    return datetime.now(timezone.utc)


def get_definition_cache(request: Request) -> DefinitionCache:
    return request.app.state.definition_cache


def get_delivery_rule() -> DeliveryRule:
    return DeliveryRule.from_config()


def get_restriction_mode() -> RestrictionMode:
    return RestrictionMode(config.COUPON_RESTRICTION_MODE)

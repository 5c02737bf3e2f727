import os
from decimal import Decimal
from dotenv import load_dotenv

# Load .env (VS Code terminals sometimes don't inject env vars)
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./promo_engine.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Delivery is free only strictly above the threshold
FREE_DELIVERY_THRESHOLD = Decimal(os.getenv("FREE_DELIVERY_THRESHOLD", "999.00"))
FLAT_DELIVERY_FEE = Decimal(os.getenv("FLAT_DELIVERY_FEE", "99.00"))
CURRENCY = os.getenv("CURRENCY", "INR")

# 'subset' or 'gated', see services.coupon_validator.RestrictionMode
COUPON_RESTRICTION_MODE = os.getenv("COUPON_RESTRICTION_MODE", "subset")

DEFINITION_CACHE_TTL_SECONDS = float(os.getenv("DEFINITION_CACHE_TTL_SECONDS", "30"))

import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
]

# Pricing
VAT_RATE = Decimal(os.getenv("VAT_RATE", "0.15"))
CURRENCY = os.getenv("CURRENCY", "SAR")
DEPOSIT_RATE = Decimal(os.getenv("DEPOSIT_RATE", "0.30"))

# Booking lifecycle
ON_HOLD_TTL_HOURS = int(os.getenv("ON_HOLD_TTL_HOURS", "48"))

# Ledger unit-of-work retries on version conflicts
LEDGER_MAX_RETRIES = int(os.getenv("LEDGER_MAX_RETRIES", "3"))

# Payment gateway (HyperPay)
HYPERPAY_MODE = os.getenv("HYPERPAY_MODE", "test").lower()
HYPERPAY_BASE_URL = os.getenv("HYPERPAY_BASE_URL") or (
    "https://eu-test.oppwa.com" if HYPERPAY_MODE == "test" else "https://oppwa.com"
)
HYPERPAY_ENTITY_ID = os.getenv("HYPERPAY_ENTITY_ID")
HYPERPAY_ACCESS_TOKEN = os.getenv("HYPERPAY_ACCESS_TOKEN")
HYPERPAY_ENABLED = bool(HYPERPAY_ENTITY_ID and HYPERPAY_ACCESS_TOKEN)

"""
Runtime settings read from the environment.
"""
import os
from typing import FrozenSet

# Checkout pricing
FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", "50"))
DELIVERY_FEE = float(os.getenv("DELIVERY_FEE", "1.5"))

ORDER_ID_PREFIX = "ORD"
ORDER_ID_DIGITS = 6
ORDER_ID_MAX_ATTEMPTS = 5

# Safety cap for range reads over the order collection
MAX_ORDERS_PER_QUERY = 2000

# Read cache lifetimes (seconds)
PRODUCT_CACHE_TTL = 5 * 60
ORDER_CACHE_TTL = 60

LOW_STOCK_THRESHOLD = 10


def telegram_credentials():
    """(token, chat_id); either may be None when notifications are not configured."""
    return os.getenv("TELEGRAM_BOT_TOKEN") or None, os.getenv("TELEGRAM_CHAT_ID") or None


def gemini_settings():
    return os.getenv("GEMINI_API_KEY") or None, os.getenv("GEMINI_MODEL", "gemini-2.0-flash")


def admin_emails() -> FrozenSet[str]:
    raw = os.getenv("ADMIN_EMAILS", "")
    return frozenset(e.strip().lower() for e in raw.split(",") if e.strip())


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()

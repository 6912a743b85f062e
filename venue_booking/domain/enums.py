"""Closed value sets for booking, payment and coupon fields."""

from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    BLOCKED = "blocked"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"


class PaymentOption(str, Enum):
    """Payment choice made at booking time on the public booking flow."""

    FULL = "full"
    DEPOSIT = "deposit"
    LATER = "later"
    HOLD = "hold"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class AssetKind(str, Enum):
    HALL = "hall"
    CHALET = "chalet"
    SERVICE = "service"


class HallType(str, Enum):
    HALL = "hall"
    CHALET = "chalet"
    RESORT = "resort"


class Role(str, Enum):
    ADMIN = "admin"
    VENDOR = "vendor"
    USER = "user"
    GUEST = "guest"

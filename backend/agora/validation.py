"""Shared enums and value validators for request payloads."""
import math
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """User roles for RBAC."""
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


class ProductStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"


class ForumCategory(str, Enum):
    GENERAL = "general"
    ANNOUNCEMENTS = "announcements"
    SUPPORT = "support"
    FEATURE_REQUESTS = "feature-requests"
    BUGS = "bugs"
    SHOWCASE = "showcase"
    OFF_TOPIC = "off-topic"


class TenantDomain(str, Enum):
    """Which application a tenant is served by."""
    MARKETPLACE = "marketplace"
    FORUM = "forum"
    ADMIN = "admin"
    SELLER = "seller"


class ReputationLevel(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


def is_valid_role(role: str) -> bool:
    return role in {r.value for r in Role}


# ============ Pagination ============

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass
class Pagination:
    """Sanitized page/limit pair."""
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def sanitize_pagination(page: float | None = None, limit: float | None = None) -> Pagination:
    """Clamp page to >= 1 and limit to [1, 100]; missing or zero values use the defaults."""
    page = max(1, math.floor(page or DEFAULT_PAGE))
    limit = min(MAX_LIMIT, max(1, math.floor(limit or DEFAULT_LIMIT)))
    return Pagination(page=page, limit=limit)


# ============ Email / Password ============

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

MIN_PASSWORD_LENGTH = 8


def is_valid_email(email: str) -> bool:
    """Basic local@domain.tld shape check."""
    return bool(EMAIL_RE.match(email))


def is_valid_password(password: str) -> bool:
    """
    Password strength requirements:
    - minimum 8 characters
    - at least one lowercase, one uppercase, one digit and one special character
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False

    return (
        re.search(r"[a-z]", password) is not None
        and re.search(r"[A-Z]", password) is not None
        and re.search(r"[0-9]", password) is not None
        and SPECIAL_CHARS_RE.search(password) is not None
    )


def get_password_strength(password: str) -> int:
    """Score a password from 0 to 5."""
    strength = 0
    if len(password) >= 8:
        strength += 1
    if len(password) >= 12:
        strength += 1
    if re.search(r"[a-z]", password) and re.search(r"[A-Z]", password):
        strength += 1
    if re.search(r"[0-9]", password):
        strength += 1
    if SPECIAL_CHARS_RE.search(password):
        strength += 1
    return strength


# ============ Amounts ============

MAX_AMOUNT = 1_000_000


def is_valid_amount(amount: float) -> bool:
    """Amount must be finite, positive and below one million."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return math.isfinite(amount) and 0 < amount < MAX_AMOUNT


def is_valid_stock_quantity(quantity: float) -> bool:
    if isinstance(quantity, bool):
        return False
    if isinstance(quantity, float):
        if not quantity.is_integer():
            return False
    elif not isinstance(quantity, int):
        return False
    return 0 <= quantity < MAX_AMOUNT


# ============ Slugs / Phones ============

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_RE.match(slug)) and 2 <= len(slug) <= 100


def is_valid_phone(phone: str) -> bool:
    """Accepts +1234567890, +1 234 567 8901, (234) 567-8901 and the like."""
    digits = re.sub(r"\D", "", phone)
    return bool(PHONE_RE.match(phone)) and 10 <= len(digits) <= 15


# ============ Dates ============

def is_valid_date_range(
    start: datetime | None = None,
    end: datetime | None = None,
    now: datetime | None = None,
) -> bool:
    """A search range must lie in the past and be ordered."""
    now = now or datetime.utcnow()

    if start and end:
        return start < end <= now
    if start:
        return start <= now
    if end:
        return end <= now
    return True


# ============ Search ============

MAX_SEARCH_LENGTH = 200


def sanitize_search_query(query: str) -> str:
    return query.strip()[:MAX_SEARCH_LENGTH]


def is_valid_search_query(query: str) -> bool:
    return len(sanitize_search_query(query)) >= 2

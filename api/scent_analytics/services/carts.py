"""Read-time cart state.

Abandonment is never stored as a flag by the ingestion path: a cart becomes
abandoned once its last activity is older than the threshold. Conversion is
terminal and wins over everything else.
"""

import enum
from datetime import datetime, timedelta

from scent_analytics.core.clock import as_utc
from scent_analytics.models.active_cart import ActiveCart
from scent_analytics.models.user_profile import UserProfile


class CartState(str, enum.Enum):
    active = "active"
    abandoned = "abandoned"
    converted = "converted"


def cart_state(cart: ActiveCart, now: datetime, threshold: timedelta) -> CartState:
    if cart.converted_at is not None:
        return CartState.converted
    if cart.abandoned_at is not None:
        return CartState.abandoned
    if as_utc(now) - as_utc(cart.last_activity) > threshold:
        return CartState.abandoned
    return CartState.active


def display_name(profile: UserProfile) -> str:
    """Full name, else first name, else the local part of the email."""
    if profile.first_name and profile.last_name:
        return f"{profile.first_name} {profile.last_name}"
    return profile.first_name or profile.email.split("@")[0]

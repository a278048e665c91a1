"""Accounts domain - users, subscriptions and purchases."""

from .purchases import CartItem, can_download, checkout, download_track, should_preview
from .subscriptions import is_active, subscribe, subscription_end_date, update_subscription
from .users import authenticate, hash_password, register_user, update_profile, verify_password

__all__ = [
    "CartItem",
    "checkout",
    "can_download",
    "download_track",
    "should_preview",
    "subscribe",
    "update_subscription",
    "subscription_end_date",
    "is_active",
    "register_user",
    "authenticate",
    "update_profile",
    "hash_password",
    "verify_password",
]

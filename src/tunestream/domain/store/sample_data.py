"""Default subscription plans written into a fresh database."""

from loguru import logger

DEFAULT_PLANS = [
    {
        "name": "Free",
        "price": 0,
        "interval": "month",
        "features": [
            "Ad-supported streaming",
            "Standard audio quality",
            "Mobile and desktop access",
        ],
    },
    {
        "name": "Premium",
        "price": 999,
        "interval": "month",
        "features": [
            "Ad-free streaming",
            "High audio quality",
            "Offline listening",
            "Unlimited skips",
        ],
    },
    {
        "name": "Ultimate",
        "price": 1499,
        "interval": "month",
        "features": [
            "Ad-free streaming",
            "Lossless audio quality",
            "Offline listening",
            "Unlimited skips",
            "Exclusive content",
        ],
    },
]


def seed_subscription_plans(store) -> int:
    """Create the default plans unless the store already has some.

    Returns:
        Number of plans created
    """
    if store.get_subscription_plans():
        return 0

    for plan in DEFAULT_PLANS:
        store.create_subscription_plan(**plan)

    logger.info(f"Seeded {len(DEFAULT_PLANS)} subscription plans")
    return len(DEFAULT_PLANS)

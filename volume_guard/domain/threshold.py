"""Daily limit gate"""

from decimal import Decimal


def is_breached(gross_volume: Decimal, daily_limit: Decimal) -> bool:
    """Limit is breached once volume reaches it (boundary inclusive)"""
    return gross_volume >= daily_limit

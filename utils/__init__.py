"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, parse_iso, parse_date
from utils.money import (
    MONEY_PLACES,
    parse_number,
    round_money,
    has_sub_minor_units,
    to_minor_units,
)

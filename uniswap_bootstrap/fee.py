import enum
import logging
from typing import final, Final

from .constants import _tick_spacing
from .exceptions import InvalidFeeTier

logger: Final = logging.getLogger(__name__)


@final
@enum.unique
class FeeTier(enum.IntEnum):
    """
    Available fee tiers represented as 1e-6 percentages (i.e. 0.05% is 500)

    V3 factories enable 1%, 0.3%, 0.05%, and 0.01% fee tiers.

    Reference: https://support.uniswap.org/hc/en-us/articles/20904283758349-What-are-fee-tiers
    """

    TIER_100 = 100
    TIER_500 = 500
    TIER_3000 = 3000
    TIER_10000 = 10000


def validate_fee_tier(fee: int) -> int:
    """
    Validate a fee tier for pool creation.
    """
    try:
        return FeeTier(fee).value
    except ValueError as exc:
        raise InvalidFeeTier(
            f"Invalid fee tier {fee}. Choices are: {list(FeeTier._value2member_map_.keys())}"
        ) from exc


def tick_spacing_for(fee: int) -> int:
    """Tick spacing the factory assigns to pools of the given fee tier."""
    return _tick_spacing[validate_fee_tier(fee)]

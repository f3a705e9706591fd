"""
Tick math and call encoding for concentrated liquidity pools.

The workflow only talks to the :class:`PoolMath` interface. :class:`UniswapV3PoolMath`
implements it with the Uniswap V3 core libraries (TickMath, SqrtPriceMath) ported to
integer Python, and encodes periphery calls with the bundled ABIs.
"""
import logging
from typing import Protocol, Tuple

from hexbytes import HexBytes
from web3 import Web3

from .constants import MAX_TICK, MIN_TICK, Q96, MAX_UINT_256
from .types import AddressLike, MintCall, Position, PoolState
from .util import _addr_to_str, _load_abi

logger = logging.getLogger(__name__)


class PoolMath(Protocol):
    def compute_tick_range(
        self, tick: int, tick_spacing: int, width: int
    ) -> Tuple[int, int]:
        ...

    def encode_mint_call(
        self,
        position: Position,
        recipient: AddressLike,
        deadline: int,
        slippage_tolerance_bps: int,
    ) -> MintCall:
        ...

    def encode_quote_call(
        self,
        pool: PoolState,
        token_in: AddressLike,
        token_out: AddressLike,
        amount_in: int,
    ) -> HexBytes:
        ...


# Source: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/TickMath.sol
_TICK_RATIOS = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """sqrt(1.0001 ** tick) * 2**96, bit-exact with TickMath.getSqrtRatioAtTick."""
    abs_tick = abs(tick)
    assert abs_tick <= MAX_TICK, f"Tick {tick} is out of bounds"

    ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001 if abs_tick & 0x1 else 1 << 128
    for bit, factor in _TICK_RATIOS:
        if abs_tick & bit:
            ratio = (ratio * factor) >> 128

    if tick > 0:
        ratio = MAX_UINT_256 // ratio

    # Q128.128 to Q64.96, rounding up
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def _mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    return -((-a * b) // denominator)


def get_amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    numerator1 = liquidity << 96
    numerator2 = sqrt_b - sqrt_a
    if round_up:
        return -(-_mul_div_rounding_up(numerator1, numerator2, sqrt_b) // sqrt_a)
    return (numerator1 * numerator2 // sqrt_b) // sqrt_a


def get_amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if round_up:
        return _mul_div_rounding_up(liquidity, sqrt_b - sqrt_a, Q96)
    return liquidity * (sqrt_b - sqrt_a) // Q96


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """
    Rounds ``tick`` to the nearest multiple of ``tick_spacing`` with ties going towards positive
    infinity like the v3 SDK, and keeps the result inside the valid tick range.
    """
    assert tick_spacing > 0, "Tick spacing must be positive"
    assert MIN_TICK <= tick <= MAX_TICK, f"Tick {tick} is out of bounds"

    rounded = (2 * tick + tick_spacing) // (2 * tick_spacing) * tick_spacing
    if rounded < MIN_TICK:
        return rounded + tick_spacing
    elif rounded > MAX_TICK:
        return rounded - tick_spacing
    return rounded


def mint_amounts(position: Position) -> Tuple[int, int]:
    """Token amounts needed to mint ``position`` at the pool's current price, rounded up."""
    pool = position.pool
    sqrt_lower = get_sqrt_ratio_at_tick(position.tick_lower)
    sqrt_upper = get_sqrt_ratio_at_tick(position.tick_upper)
    if pool.tick < position.tick_lower:
        return get_amount0_delta(sqrt_lower, sqrt_upper, position.liquidity, True), 0
    elif pool.tick < position.tick_upper:
        return (
            get_amount0_delta(pool.sqrt_price_x96, sqrt_upper, position.liquidity, True),
            get_amount1_delta(sqrt_lower, pool.sqrt_price_x96, position.liquidity, True),
        )
    return 0, get_amount1_delta(sqrt_lower, sqrt_upper, position.liquidity, True)


def _apply_slippage(amount: int, slippage_tolerance_bps: int) -> int:
    return amount * (10_000 - slippage_tolerance_bps) // 10_000


class UniswapV3PoolMath:
    """:class:`PoolMath` for Uniswap V3 position managers and QuoterV2."""

    def __init__(self, w3: Web3) -> None:
        # Only used for ABI encoding, never for requests
        self._position_manager = w3.eth.contract(
            abi=_load_abi("uniswap-v3/nonFungiblePositionManager")
        )
        self._quoter = w3.eth.contract(abi=_load_abi("uniswap-v3/quoterV2"))

    def compute_tick_range(
        self, tick: int, tick_spacing: int, width: int
    ) -> Tuple[int, int]:
        center = nearest_usable_tick(tick, tick_spacing)
        return center - width * tick_spacing, center + width * tick_spacing

    def encode_mint_call(
        self,
        position: Position,
        recipient: AddressLike,
        deadline: int,
        slippage_tolerance_bps: int,
    ) -> MintCall:
        assert 0 <= slippage_tolerance_bps <= 10_000, "Slippage must be within 0-10000 bps"
        assert position.tick_lower < position.tick_upper, "Invalid tick range"

        pool = position.pool
        amount0, amount1 = mint_amounts(position)
        params = (
            _addr_to_str(pool.token0.address),
            _addr_to_str(pool.token1.address),
            pool.fee,
            position.tick_lower,
            position.tick_upper,
            amount0,
            amount1,
            _apply_slippage(amount0, slippage_tolerance_bps),
            _apply_slippage(amount1, slippage_tolerance_bps),
            _addr_to_str(recipient),
            deadline,
        )
        logger.debug(f"mint params: {params}")
        calldata = self._position_manager.encode_abi("mint", args=[params])
        # Neither side is the native currency, nothing to wrap
        return MintCall(HexBytes(calldata), 0, amount0, amount1)

    def encode_quote_call(
        self,
        pool: PoolState,
        token_in: AddressLike,
        token_out: AddressLike,
        amount_in: int,
    ) -> HexBytes:
        params = (
            _addr_to_str(token_in),
            _addr_to_str(token_out),
            amount_in,
            pool.fee,
            0,
        )
        return HexBytes(self._quoter.encode_abi("quoteExactInputSingle", args=[params]))

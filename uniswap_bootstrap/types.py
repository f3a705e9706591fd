from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from eth_typing.evm import ChecksumAddress
from hexbytes import HexBytes

if TYPE_CHECKING:
    from .token import Token


AddressLike = Union[str, ChecksumAddress]


@dataclass
class PoolState:
    # Live pool state, read from chain right before it is used
    address: ChecksumAddress
    token0: "Token"
    token1: "Token"
    fee: int
    tick_spacing: int
    tick: int
    sqrt_price_x96: int
    liquidity: int

    def __repr__(self) -> str:
        return f"Pool ({self.token0.symbol}/{self.token1.symbol}, fee: {self.fee}; tick: {self.tick}; sqrtPriceX96: {self.sqrt_price_x96}; liquidity: {self.liquidity})"


@dataclass
class Position:
    pool: PoolState
    liquidity: int
    tick_lower: int
    tick_upper: int

    def __repr__(self) -> str:
        return f"Position (liquidity: {self.liquidity}; ticks: [{self.tick_lower}, {self.tick_upper}])"


@dataclass
class MintCall:
    calldata: HexBytes
    value: int
    amount0_desired: int
    amount1_desired: int


@dataclass
class WorkflowResult:
    pool_address: ChecksumAddress
    bootstrapped: bool
    mint_tx: HexBytes
    swap_tx: HexBytes
    amount_in: int
    init_tx: Optional[HexBytes] = None

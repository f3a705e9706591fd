import logging
import time

from hexbytes import HexBytes

from .constants import MINT_DEADLINE_SECONDS, MINT_SLIPPAGE_BPS, POSITION_WIDTH_SPACINGS
from .gateway import ChainGateway
from .pool_math import PoolMath
from .types import AddressLike, PoolState, Position

logger = logging.getLogger(__name__)


class LiquidityProvisioner:
    """Adds a narrow liquidity position around the pool's current price."""

    def __init__(
        self,
        gateway: ChainGateway,
        pool_math: PoolMath,
        position_manager: AddressLike,
        width: int = POSITION_WIDTH_SPACINGS,
    ) -> None:
        self.gateway = gateway
        self.pool_math = pool_math
        self.position_manager = position_manager
        self.width = width

    def build_position(self, pool: PoolState, liquidity: int) -> Position:
        """
        Position of ``liquidity`` spanning ``width`` tick spacings on each side of the usable tick
        nearest to the pool's live tick.
        """
        tick_lower, tick_upper = self.pool_math.compute_tick_range(
            pool.tick, pool.tick_spacing, self.width
        )
        position = Position(
            pool=pool, liquidity=liquidity, tick_lower=tick_lower, tick_upper=tick_upper
        )
        logger.debug(f"{position}")
        return position

    def mint_liquidity(
        self,
        position: Position,
        recipient: AddressLike,
        deadline_seconds: int = MINT_DEADLINE_SECONDS,
        slippage_tolerance_bps: int = MINT_SLIPPAGE_BPS,
    ) -> HexBytes:
        """
        Mint ``position`` to ``recipient`` and wait for confirmation.

        The mint calldata comes from the pool math rather than the local ABIs, so it is sent as a
        prepared raw transaction.

        :param deadline_seconds: How long the transaction stays valid, so it cannot execute against a moved price.
        :param slippage_tolerance_bps: Accepted shortfall of the deposited amounts, in basis points (5 is 0.05%).
        """
        logger.info("Adding liquidity...")
        deadline = int(time.time()) + deadline_seconds
        mint = self.pool_math.encode_mint_call(
            position, recipient, deadline, slippage_tolerance_bps
        )
        logger.info(
            f"Depositing up to {mint.amount0_desired} {position.pool.token0.symbol} and {mint.amount1_desired} {position.pool.token1.symbol}"
        )

        request = self.gateway.prepare_transaction_request(
            self.position_manager,
            mint.calldata,
            value=mint.value,
            nonce=self.gateway.lease_nonce(),
        )
        signed = self.gateway.sign_transaction(request)
        mint_hash = self.gateway.send_raw_transaction(signed)

        self.gateway.wait_for_transaction_receipt(mint_hash)
        logger.info(f"Liquidity added at tx: {self.gateway.tx_link(mint_hash)}")
        return mint_hash

import logging
from fractions import Fraction
from typing import Union

from eth_typing.evm import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3

from .exceptions import PoolResolutionError
from .fee import tick_spacing_for, validate_fee_tier
from .gateway import ChainGateway
from .token import Token
from .types import AddressLike, PoolState
from .util import order_pair, pool_address_from_receipt, sqrt_price_x96_from_ratio

logger = logging.getLogger(__name__)


class PoolBootstrapper:
    """
    Creates and initializes the pool of a token pair.

    Both calls take their tokens in canonical order: a pool is identified by
    ``(token0, token1, fee)`` with ``token0 < token1``, so the swapped order would
    address a different pool.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        factory: AddressLike,
        position_manager: AddressLike,
    ) -> None:
        self.gateway = gateway
        self.factory = factory
        self.position_manager = position_manager

    def create_pool(self, token_a: Token, token_b: Token, fee: int) -> ChecksumAddress:
        """Deploy the pool through the factory and return its address."""
        fee = validate_fee_tier(fee)
        token0, token1 = order_pair(token_a, token_b)

        logger.info(
            f"Deploying {token0.symbol}/{token1.symbol} pool (fee: {fee}, tick spacing: {tick_spacing_for(fee)})..."
        )
        tx_hash = self.gateway.write_contract(
            self.factory,
            "uniswap-v3/factory",
            "createPool",
            [token0.address, token1.address, fee],
        )
        logger.info(f"Pool created at tx: {self.gateway.tx_link(tx_hash)}")

        receipt = self.gateway.wait_for_transaction_receipt(tx_hash)
        pool_address = self.resolve_pool_address(receipt, tx_hash)
        logger.info(f"Pool has contract address: {self.gateway.address_link(pool_address)}")
        return pool_address

    @staticmethod
    def resolve_pool_address(receipt: dict, tx_hash: HexBytes) -> ChecksumAddress:
        pool_address = pool_address_from_receipt(receipt)
        if pool_address is None:
            raise PoolResolutionError(Web3.to_hex(tx_hash))
        return pool_address

    def initialize_pool(
        self,
        pool_address: AddressLike,
        token_a: Token,
        token_b: Token,
        fee: int,
        starting_ratio: Union[int, Fraction, str] = 1,
    ) -> HexBytes:
        """
        Set the pool's starting price to ``starting_ratio`` (token1 per token0).

        :param pool_address: Pool returned by :meth:`create_pool`, only used for logging since the
            position manager looks the pool up by its tokens and fee.
        """
        fee = validate_fee_tier(fee)
        token0, token1 = order_pair(token_a, token_b)
        sqrt_price_x96 = sqrt_price_x96_from_ratio(starting_ratio)

        logger.info(f"Initializing pool {pool_address} at sqrtPriceX96 {sqrt_price_x96}...")
        init_hash = self.gateway.write_contract(
            self.position_manager,
            "uniswap-v3/nonFungiblePositionManager",
            "createAndInitializePoolIfNecessary",
            [token0.address, token1.address, fee, sqrt_price_x96],
            nonce=self.gateway.lease_nonce(),
        )
        logger.info(f"Initializing pool, tx: {self.gateway.tx_link(init_hash)}")

        self.gateway.wait_for_transaction_receipt(init_hash)
        return init_hash

    def read_pool_state(
        self, pool_address: AddressLike, token_a: Token, token_b: Token
    ) -> PoolState:
        """Reads the live pool state; nothing here may be cached between runs."""
        token0, token1 = order_pair(token_a, token_b)
        abi = "uniswap-v3/pool"
        tick_spacing = self.gateway.read_contract(pool_address, abi, "tickSpacing")
        fee = self.gateway.read_contract(pool_address, abi, "fee")
        liquidity = self.gateway.read_contract(pool_address, abi, "liquidity")
        sqrt_price_x96, tick, *_ = self.gateway.read_contract(pool_address, abi, "slot0")

        pool = PoolState(
            address=Web3.to_checksum_address(pool_address),
            token0=token0,
            token1=token1,
            fee=fee,
            tick_spacing=tick_spacing,
            tick=tick,
            sqrt_price_x96=sqrt_price_x96,
            liquidity=liquidity,
        )
        logger.info(f"Read {pool!r}")
        return pool

import logging
from typing import Tuple

from hexbytes import HexBytes
from web3 import Web3

from .constants import SWAP_QUOTE_AMOUNT
from .exceptions import ChainRpcError, QuoteError, SwapError
from .gateway import ChainGateway
from .pool_math import PoolMath
from .token import Token
from .types import AddressLike, PoolState

logger = logging.getLogger(__name__)


class SwapExecutor:
    """
    Quotes, then executes, a single exact-input swap through the bootstrapped pool.

    The quoted amount is what the swap sends as ``amountIn``.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        pool_math: PoolMath,
        quoter: AddressLike,
        router: AddressLike,
        amount_out_minimum: int = 0,
        sqrt_price_limit_x96: int = 0,
    ) -> None:
        """
        :param amount_out_minimum: Slippage floor passed to the router. 0 disables it.
        :param sqrt_price_limit_x96: Price limit passed to the router. 0 disables it.
        """
        self.gateway = gateway
        self.pool_math = pool_math
        self.quoter = quoter
        self.router = router
        self.amount_out_minimum = amount_out_minimum
        self.sqrt_price_limit_x96 = sqrt_price_limit_x96

    def quote(
        self,
        pool: PoolState,
        token_in: Token,
        token_out: Token,
        amount: int = SWAP_QUOTE_AMOUNT,
    ) -> int:
        """Simulate a single-hop swap of ``amount`` through the quoter and return the quoted value."""
        logger.info(f"Quoting {amount} {token_in.symbol} -> {token_out.symbol}...")
        calldata = self.pool_math.encode_quote_call(
            pool, token_in.address, token_out.address, amount
        )
        try:
            return_data = self.gateway.call(self.quoter, calldata)
        except ChainRpcError as e:
            raise QuoteError(f"Quote call failed: {e}") from e
        if not return_data:
            raise QuoteError("Quote call return data is not defined")
        if len(return_data) < 32:
            raise QuoteError(f"Quote call returned {len(return_data)} bytes, expected at least one word")

        (quoted,) = self.gateway.w3.codec.decode(["uint256"], bytes(return_data)[:32])
        logger.info(f"Quoted {quoted} for {amount} {token_in.symbol}")
        return int(quoted)

    def execute(
        self, token_in: Token, token_out: Token, amount_in: int, fee: int
    ) -> HexBytes:
        """Swap exactly ``amount_in`` of ``token_in`` for ``token_out``, paid to the signer."""
        params = (
            token_in.address,
            token_out.address,
            fee,
            self.gateway.address,
            amount_in,
            self.amount_out_minimum,
            self.sqrt_price_limit_x96,
        )
        logger.info(
            f"Swapping {Web3.from_wei(amount_in, 'ether')} {token_in.symbol} to {token_out.symbol}..."
        )
        try:
            swap_hash = self.gateway.write_contract(
                self.router,
                "uniswap-v3/router",
                "exactInputSingle",
                [params],
                nonce=self.gateway.lease_nonce(),
            )
            logger.info(f"Swap hash: {self.gateway.tx_link(swap_hash)}")
            self.gateway.wait_for_transaction_receipt(swap_hash)
        except ChainRpcError as e:
            raise SwapError(f"Swap of {amount_in} {token_in.symbol} failed: {e}") from e
        logger.info("Swap completed")
        return swap_hash

    def quote_and_swap(
        self,
        pool: PoolState,
        token_in: Token,
        token_out: Token,
        amount: int = SWAP_QUOTE_AMOUNT,
    ) -> Tuple[int, HexBytes]:
        amount_in = self.quote(pool, token_in, token_out, amount)
        return amount_in, self.execute(token_in, token_out, amount_in, pool.fee)

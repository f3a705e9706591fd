import logging
from typing import Callable, Optional, Union

from hexbytes import HexBytes
from web3 import Web3

from .allowance import AllowanceManager
from .cache import CacheStore, WorkflowCacheRecord
from .config import WorkflowSettings
from .exceptions import InsufficientFundsError
from .gateway import ChainGateway
from .liquidity import LiquidityProvisioner
from .pool import PoolBootstrapper
from .pool_math import PoolMath, UniswapV3PoolMath
from .swap import SwapExecutor
from .tokens import TokenProvisioner
from .types import WorkflowResult
from .util import order_pair

logger = logging.getLogger(__name__)


class WorkflowDriver:
    """
    Bootstraps a two-token pool, adds liquidity to it and swaps through it.

    The one-time part (deploy both tokens, create and initialize the pool) runs when the cache is
    empty or ``create`` is set, and its outcome is saved to the cache. Every run then checks
    allowances, mints a position and performs a test swap against the cached pool.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        cache: CacheStore,
        token_bytecode: Union[str, Callable[[], str]],
        settings: Optional[WorkflowSettings] = None,
        pool_math: Optional[PoolMath] = None,
        amount_out_minimum: int = 0,
        sqrt_price_limit_x96: int = 0,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.settings = settings or WorkflowSettings()
        self.init_tx: Optional[HexBytes] = None
        self.pool_math: PoolMath = pool_math or UniswapV3PoolMath(gateway.w3)

        contracts = gateway.network
        self.spenders = [contracts.position_manager, contracts.swap_router]
        self.tokens = TokenProvisioner(gateway, token_bytecode)
        self.pools = PoolBootstrapper(gateway, contracts.factory, contracts.position_manager)
        self.allowances = AllowanceManager(gateway)
        self.liquidity = LiquidityProvisioner(gateway, self.pool_math, contracts.position_manager)
        self.swaps = SwapExecutor(
            gateway,
            self.pool_math,
            contracts.quoter_v2,
            contracts.swap_router,
            amount_out_minimum=amount_out_minimum,
            sqrt_price_limit_x96=sqrt_price_limit_x96,
        )

    def check_balance(self) -> int:
        balance = self.gateway.get_balance()
        logger.info(f"Native balance: {Web3.from_wei(balance, 'ether')}")
        if balance == 0:
            raise InsufficientFundsError(self.gateway.address)
        return balance

    def bootstrap(self) -> WorkflowCacheRecord:
        """Deploy both tokens, create and initialize their pool, and persist the outcome."""
        s = self.settings
        logger.info("Deploying tokens...")
        token_one = self.tokens.deploy_token(s.token_one_name, s.token_one_symbol, s.token_one_supply)
        token_two = self.tokens.deploy_token(s.token_two_name, s.token_two_symbol, s.token_two_supply)

        token0, token1 = order_pair(token_one, token_two)
        pool_address = self.pools.create_pool(token0, token1, s.fee)
        self.init_tx = self.pools.initialize_pool(
            pool_address, token0, token1, s.fee, s.starting_ratio
        )

        record = WorkflowCacheRecord(token_one=token0, token_two=token1, pool_address=pool_address)
        self.cache.save(record)
        return record

    def run(self, create: bool = False) -> WorkflowResult:
        """
        :param create: Bootstrap new tokens and a new pool even if the cache holds some. The old
            ones are abandoned on chain.
        """
        record = self.cache.load()
        self.check_balance()

        self.init_tx = None
        bootstrapped = create or record is None
        if bootstrapped:
            record = self.bootstrap()
        assert record is not None

        self.allowances.ensure_allowances([record.token_one, record.token_two], self.spenders)

        token0, token1 = order_pair(record.token_one, record.token_two)
        pool = self.pools.read_pool_state(record.pool_address, token0, token1)

        position = self.liquidity.build_position(pool, self.settings.position_liquidity)
        mint_tx = self.liquidity.mint_liquidity(
            position,
            self.gateway.address,
            deadline_seconds=self.settings.deadline_seconds,
            slippage_tolerance_bps=self.settings.slippage_tolerance_bps,
        )

        # Swap direction is token one -> token two of the cache record
        amount_in, swap_tx = self.swaps.quote_and_swap(
            pool, record.token_one, record.token_two, self.settings.swap_amount
        )

        return WorkflowResult(
            pool_address=record.pool_address,
            bootstrapped=bootstrapped,
            mint_tx=mint_tx,
            swap_tx=swap_tx,
            amount_in=amount_in,
            init_tx=self.init_tx,
        )

import json
import logging
import os
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Mapping, Optional

from .constants import (
    ABSTRACT_TESTNET,
    CACHE_FILE,
    MINT_DEADLINE_SECONDS,
    MINT_SLIPPAGE_BPS,
    NetworkContracts,
    POOL_FEE,
    POSITION_LIQUIDITY,
    STARTING_PRICE_RATIO,
    SWAP_QUOTE_AMOUNT,
    TOKEN_BYTECODE_FILE,
    TOKEN_ONE_NAME,
    TOKEN_ONE_SUPPLY,
    TOKEN_ONE_SYMBOL,
    TOKEN_TWO_NAME,
    TOKEN_TWO_SUPPLY,
    TOKEN_TWO_SYMBOL,
    _networks,
)
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowSettings:
    token_one_name: str = TOKEN_ONE_NAME
    token_one_symbol: str = TOKEN_ONE_SYMBOL
    token_one_supply: int = TOKEN_ONE_SUPPLY
    token_two_name: str = TOKEN_TWO_NAME
    token_two_symbol: str = TOKEN_TWO_SYMBOL
    token_two_supply: int = TOKEN_TWO_SUPPLY
    fee: int = POOL_FEE
    # token1 per token0 at initialization
    starting_ratio: Fraction = Fraction(STARTING_PRICE_RATIO)
    position_liquidity: int = POSITION_LIQUIDITY
    deadline_seconds: int = MINT_DEADLINE_SECONDS
    slippage_tolerance_bps: int = MINT_SLIPPAGE_BPS
    swap_amount: int = SWAP_QUOTE_AMOUNT


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read from the environment (and ``.env``, see :mod:`cli`)."""

    private_key: str = field(repr=False)
    network_name: str
    network: NetworkContracts
    provider: str
    cache_file: str = CACHE_FILE
    bytecode_file: str = TOKEN_BYTECODE_FILE
    amount_out_minimum: int = 0
    sqrt_price_limit_x96: int = 0
    log_level: str = "INFO"
    workflow: WorkflowSettings = field(default_factory=WorkflowSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        private_key = env.get("PRIVATE_KEY")
        if not private_key:
            raise ConfigError("Private key is not defined in the environment variables")

        network_name = env.get("NETWORK", ABSTRACT_TESTNET).lower()
        if network_name not in _networks:
            raise ConfigError(
                f"Unknown network '{network_name}', choices are: {sorted(_networks)}"
            )
        network = _networks[network_name]

        return cls(
            private_key=_normalize_private_key(private_key),
            network_name=network_name,
            network=network,
            provider=env.get("PROVIDER") or network.rpc_url,
            cache_file=env.get("CACHE_FILE", CACHE_FILE),
            bytecode_file=env.get("TOKEN_BYTECODE_FILE", TOKEN_BYTECODE_FILE),
            amount_out_minimum=_int_from_env(env, "SWAP_AMOUNT_OUT_MINIMUM"),
            sqrt_price_limit_x96=_int_from_env(env, "SWAP_SQRT_PRICE_LIMIT_X96"),
            log_level=_log_level_from_env(env),
        )

    def load_bytecode(self) -> str:
        """
        Token creation bytecode for the selected network.

        The file holds a JSON object keyed by network name, or a single ``bytecode`` entry
        used for every network.
        """
        try:
            with open(self.bytecode_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read token bytecode from {self.bytecode_file}: {e}") from e

        bytecode = None
        if isinstance(data, dict):
            bytecode = data.get(self.network_name) or data.get("bytecode")
        if not isinstance(bytecode, str) or not bytecode.startswith("0x"):
            raise ConfigError(
                f"No 0x-prefixed bytecode for '{self.network_name}' in {self.bytecode_file}"
            )
        return bytecode


def _normalize_private_key(key: str) -> str:
    key = key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    try:
        valid = len(key) == 66 and int(key, 16) > 0
    except ValueError:
        valid = False
    if not valid:
        raise ConfigError("PRIVATE_KEY must be 32 bytes of hex")
    return key


def _int_from_env(env: Mapping[str, str], name: str, default: int = 0) -> int:
    value = env.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got '{value}'") from e


def _log_level_from_env(env: Mapping[str, str]) -> str:
    level = env.get("LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown LOG_LEVEL '{level}'")
    return level

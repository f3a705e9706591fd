from typing import Any, Dict, List, Optional, Tuple

import pytest
from hexbytes import HexBytes
from web3 import Web3

from uniswap_bootstrap.cache import CacheStore, WorkflowCacheRecord
from uniswap_bootstrap.constants import BASE_SEPOLIA, Q96, _networks
from uniswap_bootstrap.exceptions import ChainRpcError
from uniswap_bootstrap.token import Token

ACCOUNT = "0x94e3361495bD110114ac0b6e35Ed75E77E6a6cFA"

# Deployed in this order, so the first token deployed is token1 of the pool
TOKEN_HIGH = Web3.to_checksum_address("0xbb00000000000000000000000000000000000001")
TOKEN_LOW = Web3.to_checksum_address("0x1100000000000000000000000000000000000002")
POOL = Web3.to_checksum_address("0x9a00000000000000000000000000000000000003")

ONE_ETH = 10**18


def pool_created_data(pool: str, tick_spacing: int = 10) -> HexBytes:
    """Data of a PoolCreated event: (int24 tickSpacing, address pool)."""
    return HexBytes(Web3().codec.encode(["int24", "address"], [tick_spacing, pool]))


class FakeGateway:
    """In-memory stand-in for ChainGateway that records every call."""

    def __init__(self, balance: int = ONE_ETH) -> None:
        self.w3 = Web3()
        self.network = _networks[BASE_SEPOLIA]
        self.address = ACCOUNT
        self.balance = balance

        self.token_addresses = [TOKEN_HIGH, TOKEN_LOW]
        self.deploy_receipt: Optional[Dict[str, Any]] = None
        self.create_pool_receipt: Dict[str, Any] = {
            "status": 1,
            "contractAddress": None,
            "logs": [{"data": pool_created_data(POOL)}],
        }
        self.allowances: Dict[Tuple[str, str], int] = {}
        self.pool_state = {
            "tickSpacing": 10,
            "fee": 500,
            "liquidity": 0,
            "slot0": (Q96, 0, 0, 1, 1, 0, True),
        }
        self.quote_return = HexBytes(
            self.w3.codec.encode(
                ["uint256", "uint160", "uint32", "uint256"],
                [997 * ONE_ETH // 1000, Q96, 1, 80_000],
            )
        )
        self.failing_functions: List[str] = []

        self.deploys: List[Tuple[str, str, list]] = []
        self.writes: List[Tuple[str, str, str, list, int]] = []
        self.reads: List[Tuple[str, str, str, list]] = []
        self.quotes: List[Tuple[str, HexBytes]] = []
        self.raw_requests: List[dict] = []
        self.nonce = 0
        self._receipts: Dict[HexBytes, Dict[str, Any]] = {}
        self._failing: Dict[HexBytes, str] = {}

    def write_names(self) -> List[str]:
        return [w[2] for w in self.writes]

    def _tx(self, receipt: Dict[str, Any], name: str = "") -> HexBytes:
        tx_hash = HexBytes(len(self._receipts).to_bytes(32, "big"))
        self._receipts[tx_hash] = receipt
        if name in self.failing_functions:
            self._failing[tx_hash] = name
        return tx_hash

    def tx_link(self, tx_hash: Any) -> str:
        return f"{self.network.explorer_url}/tx/{Web3.to_hex(tx_hash)}"

    def address_link(self, address: str) -> str:
        return f"{self.network.explorer_url}/address/{address}"

    def lease_nonce(self) -> int:
        nonce = self.nonce
        self.nonce += 1
        return nonce

    def get_balance(self, address: Optional[str] = None) -> int:
        return self.balance

    def read_contract(self, address, abi_name, function_name, args=()):
        self.reads.append((address, abi_name, function_name, list(args)))
        if function_name == "allowance":
            return self.allowances.get((address, args[1]), 0)
        return self.pool_state[function_name]

    def call(self, to, data) -> HexBytes:
        self.quotes.append((to, HexBytes(data)))
        return self.quote_return

    def deploy_contract(self, abi_name, bytecode, args=()) -> HexBytes:
        self.deploys.append((abi_name, bytecode, list(args)))
        self.lease_nonce()
        if self.deploy_receipt is not None:
            return self._tx(self.deploy_receipt)
        return self._tx({"status": 1, "contractAddress": self.token_addresses.pop(0), "logs": []})

    def write_contract(self, address, abi_name, function_name, args=(), nonce=None) -> HexBytes:
        if nonce is None:
            nonce = self.lease_nonce()
        self.writes.append((address, abi_name, function_name, list(args), nonce))
        if function_name == "createPool":
            return self._tx(self.create_pool_receipt, function_name)
        if function_name == "approve":
            self.allowances[(address, args[0])] = args[1]
        return self._tx({"status": 1, "contractAddress": None, "logs": []}, function_name)

    def prepare_transaction_request(self, to, data, value=0, nonce=None) -> dict:
        return {
            "from": self.address,
            "to": to,
            "data": HexBytes(data),
            "value": value,
            "nonce": nonce if nonce is not None else self.lease_nonce(),
        }

    def sign_transaction(self, request: dict) -> HexBytes:
        self.raw_requests.append(request)
        return HexBytes(b"signed")

    def send_raw_transaction(self, signed: bytes) -> HexBytes:
        return self._tx({"status": 1, "contractAddress": None, "logs": []}, "raw")

    def wait_for_transaction_receipt(self, tx_hash: HexBytes) -> Dict[str, Any]:
        if tx_hash in self._failing:
            raise ChainRpcError(f"Transaction reverted: {self.tx_link(tx_hash)}")
        return self._receipts[tx_hash]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def token_low() -> Token:
    return Token(TOKEN_LOW, "Penguin", "PENGUIN", 1000 * ONE_ETH)


@pytest.fixture
def token_high() -> Token:
    return Token(TOKEN_HIGH, "Pudgy", "PUDGY", 1000 * ONE_ETH)


@pytest.fixture
def cache_path(tmp_path) -> str:
    return str(tmp_path / "cache.json")


@pytest.fixture
def populated_cache(cache_path, token_low, token_high) -> CacheStore:
    store = CacheStore(cache_path)
    store.save(WorkflowCacheRecord(token_one=token_low, token_two=token_high, pool_address=POOL))
    return store

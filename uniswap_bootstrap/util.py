import os
import json
import math
import functools
from fractions import Fraction

from typing import Any, List, Mapping, Tuple, TypeVar, Union

from web3 import Web3
from web3.contract import Contract
from web3.exceptions import InvalidAddress
from eth_typing.evm import ChecksumAddress

from .types import AddressLike

T = TypeVar("T")


def _addr_to_str(a: Union[AddressLike, bytes]) -> ChecksumAddress:
    if isinstance(a, bytes):
        return Web3.to_checksum_address("0x" + bytes(a).hex())
    elif isinstance(a, str) and a.startswith("0x"):
        return Web3.to_checksum_address(a)

    raise InvalidAddress(f"Couldn't convert '{a!r}' to an address")


def _address_sort_key(token: Any) -> str:
    address = token if isinstance(token, str) else token.address
    return str(address).lower()


def order_pair(token_a: T, token_b: T) -> Tuple[T, T]:
    """
    Returns the pair in canonical (token0, token1) order.

    Pools are keyed by ``(token0, token1, fee)`` with token0 < token1, comparing the
    lower-cased hex addresses. Accepts addresses or anything with an ``address`` attribute.
    """
    if _address_sort_key(token_a) == _address_sort_key(token_b):
        raise ValueError("Token addresses cannot be the same")
    if _address_sort_key(token_a) < _address_sort_key(token_b):
        return token_a, token_b
    return token_b, token_a


def _load_abi(name: str) -> List[Any]:
    path = f"{os.path.dirname(os.path.abspath(__file__))}/assets/"
    with open(os.path.abspath(path + f"{name}.abi")) as f:
        abi: List[Any] = json.load(f)
    return abi


@functools.lru_cache()
def _load_contract(w3: Web3, abi_name: str, address: AddressLike) -> Contract:
    address = Web3.to_checksum_address(address)
    return w3.eth.contract(address=address, abi=_load_abi(abi_name))  # type: ignore


# Adapted from: https://github.com/Uniswap/v3-sdk/blob/main/src/utils/encodeSqrtRatioX96.ts
def encode_sqrt_ratioX96(amount_0: int, amount_1: int) -> int:
    numerator = amount_1 << 192
    denominator = amount_0
    ratioX192 = numerator // denominator
    return math.isqrt(ratioX192)


def sqrt_price_x96_from_ratio(ratio: Union[int, Fraction, str]) -> int:
    """floor(sqrt(ratio) * 2**96), computed without floating point."""
    ratio = Fraction(ratio)
    if ratio <= 0:
        raise ValueError(f"Starting price ratio must be positive, got {ratio}")
    return encode_sqrt_ratioX96(ratio.denominator, ratio.numerator)


def pool_address_from_receipt(receipt: Mapping[str, Any]) -> Union[ChecksumAddress, None]:
    """
    Some factories report the new pool as the receipt's contract address, others only emit it
    in an event (``PoolCreated`` carries it in the last word of its data).
    """
    if receipt.get("contractAddress"):
        return _addr_to_str(receipt["contractAddress"])
    logs = receipt.get("logs") or []
    if logs and logs[0].get("data"):
        data = logs[0]["data"]
        if isinstance(data, str):
            data = bytes.fromhex(data[2:] if data.startswith("0x") else data)
        if len(data) >= 20:
            return _addr_to_str(bytes(data)[-20:])
    return None

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_typing.evm import ChecksumAddress
from web3.exceptions import InvalidAddress

from .constants import CACHE_VERSION
from .token import Token
from .util import _addr_to_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowCacheRecord:
    """Outcome of the one-time bootstrap: the two tokens and the pool they trade in."""

    token_one: Token
    token_two: Token
    pool_address: ChecksumAddress

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": CACHE_VERSION,
            "tokenOne": _token_to_json(self.token_one),
            "tokenTwo": _token_to_json(self.token_two),
            "poolAddress": self.pool_address,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "WorkflowCacheRecord":
        """Raises ``ValueError``, ``KeyError``, ``TypeError`` or ``InvalidAddress`` when ``data`` does not match the schema."""
        if data.get("version") != CACHE_VERSION:
            raise ValueError(f"Unsupported cache version {data.get('version')!r}")
        token_one = _token_from_json(data["tokenOne"])
        token_two = _token_from_json(data["tokenTwo"])
        if token_one.address == token_two.address:
            raise ValueError(f"tokenOne and tokenTwo share the address {token_one.address}")
        return cls(
            token_one=token_one,
            token_two=token_two,
            pool_address=_addr_to_str(data["poolAddress"]),
        )


def _token_to_json(token: Token) -> Dict[str, str]:
    return {
        "address": token.address,
        "tokenName": token.name,
        "tokenSymbol": token.symbol,
        # Decimal string, JSON numbers lose precision above 2**53
        "tokenSupply": str(token.total_supply),
    }


def _token_from_json(data: Dict[str, Any]) -> Token:
    supply = data["tokenSupply"]
    if not isinstance(supply, str) or not supply.isdigit():
        raise ValueError(f"tokenSupply must be a decimal string, got {supply!r}")
    return Token(
        address=_addr_to_str(data["address"]),
        name=str(data["tokenName"]),
        symbol=str(data["tokenSymbol"]),
        total_supply=int(supply),
    )


def _migrate(data: Dict[str, Any]) -> Dict[str, Any]:
    # Unversioned records have the same fields, only the version tag is missing
    if "version" not in data and {"tokenOne", "tokenTwo", "poolAddress"} <= data.keys():
        logger.info("Migrating unversioned cache record to version 1")
        return {**data, "version": 1}
    return data


class CacheStore:
    """
    Single-record JSON store for the bootstrap outcome.

    A missing file, an empty object, or a payload that doesn't match the schema all load as
    ``None``, which makes the workflow bootstrap again. Failing to read or write the file
    itself raises ``OSError``.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> Optional[WorkflowCacheRecord]:
        if not os.path.exists(self.path):
            logger.info(f"No cache at {self.path}")
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
            data = json.loads(raw) if raw.strip() else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unparsable cache {self.path}: {e}")
            return None
        if not isinstance(data, dict) or not data:
            return None
        try:
            record = WorkflowCacheRecord.from_json(_migrate(data))
        except (KeyError, TypeError, ValueError, InvalidAddress) as e:
            logger.warning(f"Ignoring cache {self.path} with unexpected schema: {e!r}")
            return None
        logger.info(f"Loaded cached pool {record.pool_address} from {self.path}")
        return record

    def save(self, record: WorkflowCacheRecord) -> None:
        """Replace the whole record, via a temporary file in the same directory."""
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_json(), f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.info(f"Saved cache to {self.path}")

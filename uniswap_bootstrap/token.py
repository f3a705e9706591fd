from dataclasses import dataclass

from .types import AddressLike


@dataclass(frozen=True)
class Token:
    """An ERC20 token deployed by the workflow"""

    address: AddressLike
    """Address of the token contract."""

    name: str
    """Name of the token, as passed to the constructor."""

    symbol: str
    """Symbol such as PUDGY."""

    total_supply: int
    """Minted supply, 18 decimals fixed point."""

    decimals: int = 18

    def __repr__(self) -> str:
        return f"Token({self.symbol}, {self.address!r}, {self.total_supply})"

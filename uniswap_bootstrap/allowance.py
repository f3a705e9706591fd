import logging
from typing import Iterable, List, Sequence, Tuple

from hexbytes import HexBytes

from .gateway import ChainGateway
from .token import Token
from .types import AddressLike

logger = logging.getLogger(__name__)


class AllowanceManager:
    """Grants the periphery contracts permission to move the workflow's tokens."""

    def __init__(self, gateway: ChainGateway) -> None:
        self.gateway = gateway

    def allowance(self, token: Token, spender: AddressLike) -> int:
        amount: int = self.gateway.read_contract(
            token.address, "erc20", "allowance", [self.gateway.address, spender]
        )
        return amount

    def approve(self, token: Token, spender: AddressLike) -> HexBytes:
        """Approve ``spender`` for the token's whole minted supply and wait for confirmation."""
        tx_hash = self.gateway.write_contract(
            token.address, "erc20", "approve", [spender, token.total_supply]
        )
        logger.info(f"Approval tx for {token.address} and {spender}: {self.gateway.tx_link(tx_hash)}")
        self.gateway.wait_for_transaction_receipt(tx_hash)
        logger.info(f"Approval confirmed for {token.symbol}")
        return tx_hash

    def ensure_allowances(
        self, tokens: Iterable[Token], spenders: Sequence[AddressLike]
    ) -> List[Tuple[Token, AddressLike]]:
        """
        Approve every (token, spender) pair whose allowance is still zero.

        Any nonzero allowance, e.g. left behind by an earlier run, counts as sufficient even if it
        would not cover a later, larger transfer.

        Returns the pairs that were approved.
        """
        logger.info("Checking allowances...")
        approved = []
        for token in tokens:
            for spender in spenders:
                if self.allowance(token, spender) == 0:
                    logger.info(f"Allowance for {token.symbol} is not set, approving...")
                    self.approve(token, spender)
                    approved.append((token, spender))
        return approved

import logging
from typing import Callable, Union

from web3 import Web3

from .exceptions import DeploymentError
from .gateway import ChainGateway
from .token import Token
from .util import _addr_to_str

logger = logging.getLogger(__name__)


class TokenProvisioner:
    """
    Deploys the workflow's ERC20 tokens.

    Deployments are sent one at a time: each one takes the next nonce of the shared signer.
    """

    def __init__(
        self, gateway: ChainGateway, bytecode: Union[str, Callable[[], str]]
    ) -> None:
        """
        :param gateway: Signer session used to send the deployments.
        :param bytecode: Creation bytecode of a token whose constructor takes ``(name, symbol, supply)``,
            or a callable returning it, called on the first deployment.
        """
        self.gateway = gateway
        self._bytecode = bytecode

    @property
    def bytecode(self) -> str:
        if callable(self._bytecode):
            self._bytecode = self._bytecode()
        return self._bytecode

    def deploy_token(self, name: str, symbol: str, supply: int) -> Token:
        """Deploy a token minting ``supply`` to the signer, blocking until it is confirmed."""
        tx_hash = self.gateway.deploy_contract("erc20", self.bytecode, [name, symbol, supply])
        logger.info(f"Token {name} deployed at: {self.gateway.tx_link(tx_hash)}")

        receipt = self.gateway.wait_for_transaction_receipt(tx_hash)
        if not receipt.get("contractAddress"):
            raise DeploymentError(name, Web3.to_hex(tx_hash))

        token = Token(
            address=_addr_to_str(receipt["contractAddress"]),
            name=name,
            symbol=symbol,
            total_supply=supply,
        )
        logger.info(f"Token {symbol} has contract address: {self.gateway.address_link(token.address)}")
        return token

import logging
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount
from eth_typing.evm import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractConstructor, ContractFunction
from web3.types import Nonce, TxParams, TxReceipt, Wei

from .constants import NetworkContracts
from .decorators import rpc_errors
from .exceptions import ChainRpcError
from .types import AddressLike
from .util import _addr_to_str, _load_abi, _load_contract

logger = logging.getLogger(__name__)


class ChainGateway:
    """
    Signer session over a web3 connection.

    Every transaction sent through the gateway takes its nonce from :meth:`lease_nonce`, so
    transactions from the workflow never compete for the same nonce.
    """

    w3: Web3
    account: LocalAccount
    network: NetworkContracts

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        network: NetworkContracts,
        use_estimate_gas: bool = True,
        receipt_timeout: float = 600,
    ) -> None:
        """
        :param w3: Connected web3 instance.
        :param account: Local account used to sign every transaction.
        :param network: Chain id, explorer and periphery contract addresses of the network.
        :param use_estimate_gas: Estimate gas with a 20% margin instead of assuming 250000.
        :param receipt_timeout: Seconds to wait for a receipt before giving up.
        """
        self.w3 = w3
        self.account = account
        self.network = network
        self.use_estimate_gas = use_estimate_gas
        self.receipt_timeout = receipt_timeout
        self.last_nonce: Optional[Nonce] = None

    @property
    def address(self) -> ChecksumAddress:
        return _addr_to_str(self.account.address)

    # ------ Links ---------------------------------------------------------------------
    def tx_link(self, tx_hash: Any) -> str:
        return f"{self.network.explorer_url}/tx/{Web3.to_hex(tx_hash)}"

    def address_link(self, address: AddressLike) -> str:
        return f"{self.network.explorer_url}/address/{address}"

    # ------ Reads ---------------------------------------------------------------------
    @rpc_errors
    def get_balance(self, address: Optional[AddressLike] = None) -> Wei:
        return self.w3.eth.get_balance(_addr_to_str(address or self.address))

    @rpc_errors
    def get_transaction_count(self, address: Optional[AddressLike] = None) -> Nonce:
        return self.w3.eth.get_transaction_count(
            _addr_to_str(address or self.address), "pending"
        )

    @rpc_errors
    def read_contract(
        self,
        address: AddressLike,
        abi_name: str,
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        contract = _load_contract(self.w3, abi_name, address)
        return getattr(contract.functions, function_name)(*args).call()

    @rpc_errors
    def call(self, to: AddressLike, data: bytes) -> HexBytes:
        """Read-only ``eth_call`` of raw calldata, returns the raw return data."""
        return self.w3.eth.call(
            {"from": self.address, "to": _addr_to_str(to), "data": HexBytes(data)}
        )

    @rpc_errors
    def wait_for_transaction_receipt(self, tx_hash: HexBytes) -> TxReceipt:
        receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if receipt.get("status", 1) == 0:
            raise ChainRpcError(
                f"Transaction reverted: {self.tx_link(tx_hash)}",
                tx_hash=Web3.to_hex(tx_hash),
            )
        return receipt

    # ------ Nonces --------------------------------------------------------------------
    def lease_nonce(self) -> Nonce:
        """Hands out the next nonce of the signer, to be used by exactly one transaction."""
        pending = self.get_transaction_count()
        if self.last_nonce is None:
            nonce = pending
        else:
            nonce = Nonce(max(self.last_nonce + 1, pending))
        logger.debug(f"nonce: {nonce}")
        self.last_nonce = nonce
        return nonce

    # ------ Writes --------------------------------------------------------------------
    @rpc_errors
    def deploy_contract(
        self, abi_name: str, bytecode: str, args: Sequence[Any] = ()
    ) -> HexBytes:
        """Submit a contract creation transaction."""
        contract = self.w3.eth.contract(abi=_load_abi(abi_name), bytecode=bytecode)
        return self._build_and_send_tx(contract.constructor(*args))

    @rpc_errors
    def write_contract(
        self,
        address: AddressLike,
        abi_name: str,
        function_name: str,
        args: Sequence[Any] = (),
        nonce: Optional[Nonce] = None,
    ) -> HexBytes:
        contract = _load_contract(self.w3, abi_name, address)
        function = getattr(contract.functions, function_name)(*args)
        return self._build_and_send_tx(function, nonce=nonce)

    @rpc_errors
    def prepare_transaction_request(
        self,
        to: AddressLike,
        data: bytes,
        value: int = 0,
        nonce: Optional[Nonce] = None,
    ) -> TxParams:
        """Fill in a raw transaction for calldata built outside of the local ABIs."""
        request: TxParams = {
            "from": self.address,
            "to": _addr_to_str(to),
            "data": HexBytes(data),
            "value": Wei(value),
            "nonce": nonce if nonce is not None else self.lease_nonce(),
            "chainId": self.w3.eth.chain_id,
            "gasPrice": self.w3.eth.gas_price,
        }
        request["gas"] = self._gas_limit(request)
        return request

    @rpc_errors
    def sign_transaction(self, request: TxParams) -> HexBytes:
        signed = self.account.sign_transaction(request)  # type: ignore
        return HexBytes(signed.raw_transaction)

    @rpc_errors
    def send_raw_transaction(self, signed: bytes) -> HexBytes:
        return self.w3.eth.send_raw_transaction(signed)

    # ------ Tx Utils ------------------------------------------------------------------
    def _gas_limit(self, transaction: TxParams) -> Wei:
        if self.use_estimate_gas:
            # The Uniswap V3 UI uses 20% margin for transactions
            return Wei(int(self.w3.eth.estimate_gas(transaction) * 1.2))
        return Wei(250000)

    def _build_and_send_tx(
        self,
        function: "ContractFunction | ContractConstructor",
        nonce: Optional[Nonce] = None,
    ) -> HexBytes:
        """Build, sign and send a transaction."""
        tx_params: TxParams = {
            "from": self.address,
            "nonce": nonce if nonce is not None else self.lease_nonce(),
        }
        transaction = function.build_transaction(tx_params)
        transaction["gas"] = self._gas_limit(transaction)
        return self.send_raw_transaction(self.sign_transaction(transaction))

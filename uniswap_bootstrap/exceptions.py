from typing import Any, Optional


class BootstrapError(Exception):
    """Base class for every fatal condition of the bootstrap workflow."""


class ConfigError(BootstrapError):
    """Raised when required configuration (signing key, network, bytecode) is missing or invalid."""


class InvalidFeeTier(BootstrapError):
    """Raised when an unsupported fee tier is used."""


class InsufficientFundsError(BootstrapError):
    """Raised when the signer has no native balance to pay for transactions."""

    def __init__(self, address: Any) -> None:
        BootstrapError.__init__(
            self, f"No native balance on {address}, cannot send transactions"
        )


class DeploymentError(BootstrapError):
    """Raised when a deployment receipt does not carry a contract address."""

    def __init__(self, name: str, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        BootstrapError.__init__(
            self, f"Contract address missing from receipt of {name} deployment {tx_hash}"
        )


class PoolResolutionError(BootstrapError):
    """Raised when the pool address can be read neither from the receipt nor its logs."""

    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        BootstrapError.__init__(
            self, f"Pool address could not be resolved from createPool tx {tx_hash}"
        )


class SwapError(BootstrapError):
    """Raised when the swap cannot be quoted or executed."""


class QuoteError(SwapError):
    """Raised when the quoter call fails or returns no data."""


class ChainRpcError(BootstrapError):
    """Raised on any failure of the underlying chain client, including reverted transactions."""

    def __init__(self, message: str, tx_hash: Optional[str] = None) -> None:
        self.tx_hash = tx_hash
        BootstrapError.__init__(self, message)

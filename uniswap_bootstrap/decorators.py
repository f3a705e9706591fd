import functools
import logging
from typing import Callable, TypeVar

import requests
from typing_extensions import ParamSpec
from web3.exceptions import Web3Exception

from .exceptions import BootstrapError, ChainRpcError

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")


def rpc_errors(f: Callable[P, T]) -> Callable[P, T]:
    """Decorator that re-raises failures of the chain client as ``ChainRpcError``."""

    @functools.wraps(f)
    def wrapped(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return f(*args, **kwargs)
        except BootstrapError:
            raise
        except (Web3Exception, requests.exceptions.RequestException, ValueError) as e:
            logger.debug(f"{f.__name__} failed: {e!r}")
            raise ChainRpcError(f"{f.__name__} failed: {e}") from e

    return wrapped

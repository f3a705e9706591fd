import logging

import click
from dotenv import find_dotenv, load_dotenv
from eth_account import Account
from web3 import Web3

from .cache import CacheStore
from .config import Settings
from .exceptions import BootstrapError
from .gateway import ChainGateway
from .workflow import WorkflowDriver


logger = logging.getLogger(__name__)


def build_driver(settings: Settings) -> WorkflowDriver:
    w3 = Web3(Web3.HTTPProvider(settings.provider, request_kwargs={"timeout": 60}))
    account = Account.from_key(settings.private_key)
    gateway = ChainGateway(w3, account, settings.network)
    logger.info(f"Using {w3} ('{settings.network_name}', chain id: {settings.network.chain_id})")
    return WorkflowDriver(
        gateway,
        CacheStore(settings.cache_file),
        settings.load_bytecode,
        settings.workflow,
        amount_out_minimum=settings.amount_out_minimum,
        sqrt_price_limit_x96=settings.sqrt_price_limit_x96,
    )


@click.command()
@click.option(
    "--create",
    is_flag=True,
    help="Deploy new tokens and a new pool even if the cache already holds some.",
)
def main(create: bool) -> None:
    """Bootstrap a two-token pool, add liquidity to it and make a test swap."""
    load_dotenv(find_dotenv(usecwd=True))
    try:
        settings = Settings.from_env()
        logging.basicConfig(level=settings.log_level)
        result = build_driver(settings).run(create=create)
    except (BootstrapError, OSError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Pool: {result.pool_address}")
    click.echo(f"Swapped {result.amount_in} in tx {Web3.to_hex(result.swap_tx)}")
    click.echo("Swap completed!")

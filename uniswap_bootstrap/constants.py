from typing import Dict, NamedTuple


class NetworkContracts(NamedTuple):
    chain_id: int
    rpc_url: str
    explorer_url: str
    factory: str
    swap_router: str
    position_manager: str
    weth: str
    quoter_v2: str


ABSTRACT_TESTNET = "abstract_testnet"
BASE_SEPOLIA = "base_sepolia"

# see: https://chainid.network/chains/
_networks: Dict[str, NetworkContracts] = {
    ABSTRACT_TESTNET: NetworkContracts(
        chain_id=11124,
        rpc_url="https://api.testnet.abs.xyz",
        explorer_url="https://sepolia.abscan.org",
        factory="0x2E17FF9b877661bDFEF8879a4B31665157a960F0",
        swap_router="0xb9D4347d129a83cBC40499Cd4fF223dE172a70dF",
        position_manager="0x069f199763c045A294C7913E64bA80E5F362A5d7",
        weth="0x9EDCde0257F2386Ce177C3a7FCdd97787F0D841d",
        quoter_v2="0xdE41045eb15C8352413199f35d6d1A32803DaaE2",
    ),
    BASE_SEPOLIA: NetworkContracts(
        chain_id=84532,
        rpc_url="https://sepolia.base.org",
        explorer_url="https://sepolia.basescan.org",
        factory="0x4752ba5DBc23f44D87826276BF6Fd6b1C372aD24",
        swap_router="0x94cC0AaC535CCDB3C01d6787D6413C739ae12bc4",
        position_manager="0x27F971cb582BF9E50F397e4d29a5C7A34f11faA2",
        weth="0x4200000000000000000000000000000000000006",
        quoter_v2="0xC5290058841028F1614F3A6F0F5816cAd0df5E27",
    ),
}

ONE_TOKEN = 10**18

Q96 = 2**96
MAX_UINT_256 = (2**256) - 1

# Source: https://github.com/Uniswap/v3-core/blob/v1.0.0/contracts/libraries/TickMath.sol#L8-L11
MIN_TICK = -887272
MAX_TICK = -MIN_TICK

# Source: https://github.com/Uniswap/v3-core/blob/v1.0.0/contracts/UniswapV3Factory.sol#L26-L31
_tick_spacing = {100: 1, 500: 10, 3_000: 60, 10_000: 200}

# Workflow defaults
TOKEN_ONE_NAME = "Pudgy"
TOKEN_ONE_SYMBOL = "PUDGY"
TOKEN_ONE_SUPPLY = 1000 * ONE_TOKEN

TOKEN_TWO_NAME = "Penguin"
TOKEN_TWO_SYMBOL = "PENGUIN"
TOKEN_TWO_SUPPLY = 1000 * ONE_TOKEN

POOL_FEE = 500
STARTING_PRICE_RATIO = 1
POSITION_LIQUIDITY = 500 * ONE_TOKEN
# Ticks on each side of the nearest usable tick, in units of tick spacing
POSITION_WIDTH_SPACINGS = 2
MINT_DEADLINE_SECONDS = 20 * 60
MINT_SLIPPAGE_BPS = 5
SWAP_QUOTE_AMOUNT = ONE_TOKEN

CACHE_FILE = "cache.json"
CACHE_VERSION = 1
TOKEN_BYTECODE_FILE = "bytecode.json"

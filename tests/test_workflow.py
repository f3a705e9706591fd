import json

import pytest
from hexbytes import HexBytes
from web3 import Web3

from uniswap_bootstrap.cache import CacheStore
from uniswap_bootstrap.constants import ONE_TOKEN, Q96
from uniswap_bootstrap.exceptions import (
    DeploymentError,
    InsufficientFundsError,
    PoolResolutionError,
    QuoteError,
    SwapError,
)
from uniswap_bootstrap.workflow import WorkflowDriver

from .conftest import ACCOUNT, POOL, TOKEN_HIGH, TOKEN_LOW, FakeGateway

BYTECODE = "0x6080"

MINT_PARAMS = "(address,address,uint24,int24,int24,uint256,uint256,uint256,uint256,address,uint256)"


def make_driver(gateway: FakeGateway, cache: CacheStore, **kwargs) -> WorkflowDriver:
    return WorkflowDriver(gateway, cache, BYTECODE, **kwargs)  # type: ignore


def decode_mint(gateway: FakeGateway, calldata: bytes) -> tuple:
    selector = Web3.keccak(text=f"mint({MINT_PARAMS})")[:4]
    assert bytes(calldata[:4]) == bytes(selector)
    (params,) = gateway.w3.codec.decode([MINT_PARAMS], bytes(calldata[4:]))
    return params


def test_bootstrap_from_empty_cache(gateway: FakeGateway, cache_path: str):
    result = make_driver(gateway, CacheStore(cache_path)).run(create=True)

    assert result.bootstrapped
    assert result.pool_address == POOL
    assert len(gateway.deploys) == 2
    assert [d[2][0] for d in gateway.deploys] == ["Pudgy", "Penguin"]
    assert all(d[1] == BYTECODE for d in gateway.deploys)

    create = [w for w in gateway.writes if w[2] == "createPool"]
    assert len(create) == 1
    assert create[0][3] == [TOKEN_LOW, TOKEN_HIGH, 500]

    init = [w for w in gateway.writes if w[2] == "createAndInitializePoolIfNecessary"]
    assert len(init) == 1
    assert init[0][3] == [TOKEN_LOW, TOKEN_HIGH, 500, 2**96]
    assert result.init_tx is not None

    with open(cache_path) as f:
        cached = json.load(f)
    assert cached["poolAddress"] == POOL
    assert cached["tokenOne"]["address"] == TOKEN_LOW
    assert cached["tokenTwo"]["address"] == TOKEN_HIGH
    assert cached["tokenTwo"]["tokenSymbol"] == "PUDGY"
    assert cached["tokenOne"]["tokenSupply"] == str(1000 * ONE_TOKEN)


def test_empty_cache_bootstraps_without_flag(gateway: FakeGateway, cache_path: str):
    with open(cache_path, "w") as f:
        f.write("{}")

    result = make_driver(gateway, CacheStore(cache_path)).run()

    assert result.bootstrapped
    assert len(gateway.deploys) == 2


def test_resume_skips_bootstrap(gateway: FakeGateway, populated_cache: CacheStore):
    result = make_driver(gateway, populated_cache).run()

    assert not result.bootstrapped
    assert result.init_tx is None
    assert gateway.deploys == []
    assert "createPool" not in gateway.write_names()
    assert "createAndInitializePoolIfNecessary" not in gateway.write_names()
    # Straight to the allowance check
    assert gateway.reads[0][2] == "allowance"


def test_resume_does_not_touch_cache(gateway: FakeGateway, populated_cache: CacheStore):
    with open(populated_cache.path) as f:
        before = f.read()

    make_driver(gateway, populated_cache).run()

    with open(populated_cache.path) as f:
        assert f.read() == before


def test_create_flag_replaces_cached_pool(gateway: FakeGateway, populated_cache: CacheStore):
    new_pool = Web3.to_checksum_address("0x7700000000000000000000000000000000000077")
    gateway.create_pool_receipt = {"status": 1, "contractAddress": new_pool, "logs": []}

    result = make_driver(gateway, populated_cache).run(create=True)

    assert result.bootstrapped
    assert len(gateway.deploys) == 2
    assert populated_cache.load().pool_address == new_pool


def test_allowances_approved_once_per_pair(gateway: FakeGateway, cache_path: str):
    make_driver(gateway, CacheStore(cache_path)).run()

    approvals = [w for w in gateway.writes if w[2] == "approve"]
    spenders = {gateway.network.position_manager, gateway.network.swap_router}
    assert len(approvals) == 4
    assert {(w[0], w[3][0]) for w in approvals} == {
        (token, spender) for token in (TOKEN_LOW, TOKEN_HIGH) for spender in spenders
    }
    assert all(w[3][1] == 1000 * ONE_TOKEN for w in approvals)


def test_existing_allowances_are_not_renewed(gateway: FakeGateway, populated_cache: CacheStore):
    for token in (TOKEN_LOW, TOKEN_HIGH):
        for spender in (gateway.network.position_manager, gateway.network.swap_router):
            gateway.allowances[(token, spender)] = 1

    make_driver(gateway, populated_cache).run()

    assert "approve" not in gateway.write_names()


def test_mint_is_sent_as_raw_transaction(gateway: FakeGateway, populated_cache: CacheStore):
    gateway.pool_state["slot0"] = (Q96, -23, 0, 1, 1, 0, True)
    make_driver(gateway, populated_cache).run()

    (mint_request,) = gateway.raw_requests
    assert mint_request["to"] == gateway.network.position_manager
    assert mint_request["value"] == 0

    params = decode_mint(gateway, mint_request["data"])
    token0, token1, fee, tick_lower, tick_upper = params[:5]
    assert (token0.lower(), token1.lower()) == (TOKEN_LOW.lower(), TOKEN_HIGH.lower())
    assert fee == 500
    assert (tick_lower, tick_upper) == (-40, 0)
    assert params[9].lower() == ACCOUNT.lower()


def test_mint_nonce_follows_approvals(gateway: FakeGateway, populated_cache: CacheStore):
    make_driver(gateway, populated_cache).run()

    approval_nonces = [w[4] for w in gateway.writes if w[2] == "approve"]
    (mint_request,) = gateway.raw_requests
    swap_nonce = [w[4] for w in gateway.writes if w[2] == "exactInputSingle"][0]
    assert max(approval_nonces) < mint_request["nonce"] < swap_nonce


def test_swap_uses_quoted_amount(gateway: FakeGateway, populated_cache: CacheStore):
    quoted = 123_456_789_000
    gateway.quote_return = gateway.w3.codec.encode(
        ["uint256", "uint160", "uint32", "uint256"], [quoted, Q96, 0, 1]
    )

    result = make_driver(gateway, populated_cache).run()

    (swap,) = [w for w in gateway.writes if w[2] == "exactInputSingle"]
    token_in, token_out, fee, recipient, amount_in, amount_out_min, price_limit = swap[3][0]
    assert amount_in == quoted
    assert result.amount_in == quoted
    assert (token_in, token_out) == (TOKEN_LOW, TOKEN_HIGH)
    assert fee == 500
    assert recipient == ACCOUNT
    assert amount_out_min == 0
    assert price_limit == 0


def test_swap_protection_is_configurable(gateway: FakeGateway, populated_cache: CacheStore):
    make_driver(
        gateway, populated_cache, amount_out_minimum=10, sqrt_price_limit_x96=Q96 // 2
    ).run()

    (swap,) = [w for w in gateway.writes if w[2] == "exactInputSingle"]
    assert swap[3][0][5:] == (10, Q96 // 2)


def test_quote_is_requested_for_one_token(gateway: FakeGateway, populated_cache: CacheStore):
    make_driver(gateway, populated_cache).run()

    ((to, calldata),) = gateway.quotes
    assert to == gateway.network.quoter_v2
    (params,) = gateway.w3.codec.decode(
        ["(address,address,uint256,uint24,uint160)"], bytes(calldata[4:])
    )
    assert params[2] == ONE_TOKEN
    assert params[0].lower() == TOKEN_LOW.lower()


def test_zero_balance_aborts_before_deploying(cache_path: str):
    gateway = FakeGateway(balance=0)
    with pytest.raises(InsufficientFundsError):
        make_driver(gateway, CacheStore(cache_path)).run(create=True)
    assert gateway.deploys == []


def test_unresolvable_pool_aborts(gateway: FakeGateway, cache_path: str):
    gateway.create_pool_receipt = {"status": 1, "contractAddress": None, "logs": []}

    with pytest.raises(PoolResolutionError):
        make_driver(gateway, CacheStore(cache_path)).run()
    assert CacheStore(cache_path).load() is None


def test_deployment_without_address_aborts(gateway: FakeGateway, cache_path: str):
    gateway.deploy_receipt = {"status": 1, "contractAddress": None, "logs": []}

    with pytest.raises(DeploymentError):
        make_driver(gateway, CacheStore(cache_path)).run()
    assert len(gateway.deploys) == 1


def test_empty_quote_aborts(gateway: FakeGateway, populated_cache: CacheStore):
    gateway.quote_return = b""

    with pytest.raises(QuoteError):
        make_driver(gateway, populated_cache).run()
    assert "exactInputSingle" not in gateway.write_names()


def test_short_quote_aborts(gateway: FakeGateway, populated_cache: CacheStore):
    gateway.quote_return = HexBytes(b"\x01")

    with pytest.raises(QuoteError) as exc:
        make_driver(gateway, populated_cache).run()
    assert "1 bytes" in str(exc.value)
    assert "exactInputSingle" not in gateway.write_names()


def test_reverted_swap_raises_swap_error(gateway: FakeGateway, populated_cache: CacheStore):
    gateway.failing_functions.append("exactInputSingle")

    with pytest.raises(SwapError) as exc:
        make_driver(gateway, populated_cache).run()
    assert "reverted" in str(exc.value)


def test_cache_with_one_token_twice_bootstraps(gateway: FakeGateway, cache_path: str):
    token = {
        "address": TOKEN_LOW,
        "tokenName": "Penguin",
        "tokenSymbol": "PENGUIN",
        "tokenSupply": str(1000 * ONE_TOKEN),
    }
    with open(cache_path, "w") as f:
        json.dump({"version": 1, "tokenOne": token, "tokenTwo": token, "poolAddress": POOL}, f)

    result = make_driver(gateway, CacheStore(cache_path)).run()

    assert result.bootstrapped
    assert len(gateway.deploys) == 2
    assert gateway.write_names().count("createPool") == 1

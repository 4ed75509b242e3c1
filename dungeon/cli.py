"""
Scenario runner for the staking ledger.

Replays a YAML scenario against a fresh `LocalChain` and prints the resulting
balances, pool totals and state root as JSON.

Scenario format:

    ledger: dungeon            # ledger address (default "ledger")
    reward_token: DNG          # reward asset id (default "DNG")
    tokens: [LP]               # staked asset ids
    fund:                      # faucet + unlimited approval to the ledger
      - {holder: bob, token: LP, amount: 1000}
    steps:
      - {op: add_normal_pool, sender: alice, token: LP, weight: 100}
      - {op: deposit_normal_pool, sender: bob, pool_id: 0, amount: 1000}
      - {mine: 5}
      - {op: collect_normal_pool, sender: bob, pool_id: 0}
      - {op: withdraw_normal_pool, sender: bob, pool_id: 0, amount: 5000, expect_error: InsufficientBalanceError}

Example:
  dungeon-sim config.yaml scenario.yaml
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping

import yaml

from .config import load_config
from .core.errors import LedgerError, LedgerInvariantError
from .core.math import MAX_UINT256
from .integration.chain import LocalChain
from .integration.ledger import StakingLedger
from .integration.tokens import MemoryToken
from .state.snapshot import compute_state_root

logger = logging.getLogger(__name__)

LEDGER_OPS = frozenset(
    {
        "set_operator",
        "add_normal_pool",
        "add_burn_pool",
        "add_multi_burn_pool",
        "deposit_normal_pool",
        "withdraw_normal_pool",
        "collect_normal_pool",
        "emergency_withdraw_normal_pool",
        "deposit_burn_pool",
        "collect_burn_pool",
        "deposit_multi_burn_pool",
        "collect_multi_burn_pool",
        "mass_update_pools",
    }
)


class ScenarioError(Exception):
    pass


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise ScenarioError(f"{name} must be a mapping")
    return obj


def _resolve_args(step: Mapping[str, Any], tokens: Mapping[str, MemoryToken], reward_asset: str) -> dict[str, Any]:
    args = {k: v for k, v in step.items() if k not in ("op", "expect_error")}
    if "token" in args:
        args["staked_token"] = _token(tokens, args.pop("token"))
    if "tokens" in args:
        args["staked_tokens"] = [_token(tokens, t) for t in args.pop("tokens")]
    if step["op"].startswith("add_"):
        args.setdefault("reward_token", reward_asset)
    return args


def _token(tokens: Mapping[str, MemoryToken], asset_id: str) -> MemoryToken:
    try:
        return tokens[asset_id]
    except KeyError:
        raise ScenarioError(f"unknown token {asset_id!r}") from None


def _run_step(chain: LocalChain, ledger: StakingLedger, tokens: Mapping[str, MemoryToken], step: Mapping[str, Any]) -> None:
    if "mine" in step:
        chain.mine(int(step["mine"]))
        return
    if "advance_to" in step:
        chain.advance_to(int(step["advance_to"]))
        return

    op = step.get("op")
    if op not in LEDGER_OPS:
        raise ScenarioError(f"unknown op: {op!r}")
    args = _resolve_args(step, tokens, ledger.reward_asset)
    expected = step.get("expect_error")

    try:
        result = chain.transact(getattr(ledger, op), **args)
    except LedgerError as exc:
        if expected is None or type(exc).__name__ != expected:
            raise
        logger.info("block %d: %s failed as expected (%s)", chain.block_number, op, expected)
        return
    if expected is not None:
        raise ScenarioError(f"{op} succeeded but {expected} was expected")
    logger.info("block %d: %s -> %s", chain.block_number, op, result)


def run_scenario(config_path: Path, scenario_path: Path) -> dict[str, Any]:
    config = load_config(config_path)
    scenario = _require_mapping(yaml.safe_load(scenario_path.read_text(encoding="utf-8")), name="scenario")

    chain = LocalChain()
    address = str(scenario.get("ledger", "ledger"))
    reward = chain.create_reward_token(str(scenario.get("reward_token", "DNG")), minter=address)
    ledger = chain.deploy_ledger(config, address=address, reward_token=reward)

    tokens: dict[str, MemoryToken] = {}
    for asset_id in scenario.get("tokens") or []:
        tokens[str(asset_id)] = chain.create_token(str(asset_id))
    for grant in scenario.get("fund") or []:
        grant = _require_mapping(grant, name="fund entry")
        token = _token(tokens, grant["token"])
        token.faucet(grant["holder"], int(grant["amount"]))
        token.approve(grant["holder"], address, MAX_UINT256)

    for idx, step in enumerate(scenario.get("steps") or []):
        step = _require_mapping(step, name=f"step {idx}")
        _run_step(chain, ledger, tokens, step)

    violations = ledger.check_invariants()
    if violations:
        raise LedgerInvariantError(violations)

    balances: dict[str, dict[str, int]] = {}
    for (holder, asset), amount in sorted(chain.book.get_all_balances().items()):
        balances.setdefault(holder, {})[asset] = amount
    assets = sorted({reward.asset_id, *tokens})
    return {
        "block": chain.block_number,
        "state_root": compute_state_root(ledger.registry),
        "operator": ledger.operator,
        "pools": [
            {
                "pool_id": p.pool_id,
                "kind": p.kind.value,
                "total_staked": p.total_staked,
                "total_shares": p.total_shares,
                "acc_reward_per_share": p.acc_reward_per_share,
                "last_reward_block": p.last_reward_block,
                "round": p.round,
            }
            for p in ledger.registry.pools()
        ],
        "balances": balances,
        "supply": {a: chain.book.total_supply(a) for a in assets},
    }


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="dungeon-sim", description="Replay a staking ledger scenario.")
    ap.add_argument("config", type=Path, help="ledger config YAML")
    ap.add_argument("scenario", type=Path, help="scenario YAML")
    ap.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        report = run_scenario(args.config, args.scenario)
    except (ScenarioError, LedgerError, OSError, yaml.YAMLError, ValueError, TypeError, KeyError) as exc:
        print(f"dungeon-sim: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 2

    print(json.dumps(report, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

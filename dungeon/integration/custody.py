"""
Principal escrow through the staked-token collaborators.

A thin wrapper: every call is checked, and a False return or a foreign
exception becomes `TransferFailure`. Ledger errors raised from inside a token
callback (e.g. a re-entrant call hitting the guard) propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence

from ..core.errors import InvalidPoolError, LedgerError, TransferFailure
from .tokens import BURN_ADDRESS, StakedToken

logger = logging.getLogger(__name__)


def checked_call(what: str, fn: Callable[..., object], *args: object) -> None:
    try:
        ok = fn(*args)
    except LedgerError:
        raise
    except Exception as exc:
        raise TransferFailure(f"{what} failed: {exc}") from exc
    if ok is False:
        raise TransferFailure(f"{what} returned false")


class StakedTokenCustody:
    """Moves principal between participants and the escrow account `holder`."""

    def __init__(self, holder: str) -> None:
        self.holder = holder
        self._tokens: Dict[str, StakedToken] = {}

    def register(self, token: StakedToken) -> str:
        asset_id = getattr(token, "asset_id", None)
        if not isinstance(asset_id, str) or not asset_id:
            raise InvalidPoolError("staked token must expose a non-empty asset_id")
        known = self._tokens.get(asset_id)
        if known is not None and known is not token:
            raise InvalidPoolError(f"asset {asset_id} is already bound to another token")
        self._tokens[asset_id] = token
        return asset_id

    def token(self, asset_id: str) -> StakedToken:
        try:
            return self._tokens[asset_id]
        except KeyError:
            raise InvalidPoolError(f"no custody token registered for {asset_id}") from None

    def escrowed(self, asset_id: str) -> int:
        return self.token(asset_id).balance_of(self.holder)

    def pull(self, assets: Sequence[str], user: str, amount: int) -> None:
        """Escrow `amount` of every asset in `assets` from `user`.

        All or nothing: if one leg fails, the legs already escrowed are sent
        back to `user` before the failure propagates.
        """
        pulled: List[str] = []
        try:
            for asset_id in assets:
                checked_call(
                    f"transfer_from({user} -> custody, {amount} {asset_id})",
                    self.token(asset_id).transfer_from,
                    self.holder,
                    user,
                    self.holder,
                    amount,
                )
                pulled.append(asset_id)
        except LedgerError:
            if pulled:
                logger.warning("pull from %s failed; refunding %d %s", user, amount, ", ".join(pulled))
                self.push(pulled, user, amount)
            raise

    def push(self, assets: Sequence[str], user: str, amount: int) -> None:
        """Release `amount` of every asset in `assets` to `user`."""
        for asset_id in assets:
            checked_call(
                f"transfer(custody -> {user}, {amount} {asset_id})",
                self.token(asset_id).transfer,
                self.holder,
                user,
                amount,
            )

    def burn(self, assets: Sequence[str], amount: int) -> None:
        """Destroy `amount` of every asset in `assets` held in escrow."""
        for asset_id in assets:
            logger.debug("burning %d %s from custody", amount, asset_id)
            checked_call(
                f"burn({amount} {asset_id})",
                self.token(asset_id).transfer,
                self.holder,
                BURN_ADDRESS,
                amount,
            )

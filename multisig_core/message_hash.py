"""
Message binding: the digest validators sign for each action.

A digest is ``keccak256(abi.encode(tag, account, *params[, nonce]))``:

  - ``tag`` is ``"MultiSignature.<action>"``, so every action kind is its own
    hash domain (an approval to add V can never be replayed to remove V);
  - ``account`` is the address of the multi-signature account itself, so an
    approval for one account is worthless against another;
  - governance actions append the current nonce, so each approval is good
    for exactly one state transition.

Value-moving actions (transfer, call) are NOT nonce-bound.  A quorum of
signatures over a transfer or call stays valid for as long as the
validator set approves it and can be submitted again; callers that need
one-shot value approvals must make the reference / payload unique.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Sequence

from multisig_core import abi
from multisig_core.crypto_utils import keccak256, normalize_address

DOMAIN_PREFIX = "MultiSignature."


class ActionKind(Enum):
    ADD_VALIDATOR = "addValidator"
    REMOVE_VALIDATOR = "removeValidator"
    UPDATE_THRESHOLD = "updateThreshold"
    TRANSFER = "transfer"
    CALL = "call"

    @property
    def is_governance(self) -> bool:
        return self in GOVERNANCE_ACTIONS


GOVERNANCE_ACTIONS = frozenset({
    ActionKind.ADD_VALIDATOR,
    ActionKind.REMOVE_VALIDATOR,
    ActionKind.UPDATE_THRESHOLD,
})

# Parameter layout per action, in signing order
PARAMETER_TYPES: dict[ActionKind, tuple[str, ...]] = {
    ActionKind.ADD_VALIDATOR: ("address",),
    ActionKind.REMOVE_VALIDATOR: ("address",),
    ActionKind.UPDATE_THRESHOLD: ("uint256",),
    ActionKind.TRANSFER: ("address", "uint256", "string"),       # recipient, amount, reference
    ActionKind.CALL: ("address", "uint256", "string", "bytes", "uint256"),
    # target, value, function signature, data, flag
}


def digest(
    action_kind: ActionKind | str,
    parameters: Sequence[Any],
    account: str | bytes,
    nonce: int | None = None,
) -> bytes:
    """
    Deterministic 32-byte digest for one action request.

    ``nonce`` is mandatory for governance actions and rejected for value
    actions.
    """
    kind = ActionKind(action_kind)
    param_types = PARAMETER_TYPES[kind]
    if len(parameters) != len(param_types):
        raise ValueError(
            f"{kind.value} takes {len(param_types)} parameters, got {len(parameters)}"
        )

    types = ["string", "address", *param_types]
    values: list[Any] = [DOMAIN_PREFIX + kind.value, normalize_address(account), *parameters]
    if kind.is_governance:
        if nonce is None:
            raise ValueError(f"{kind.value} digests are bound to a nonce")
        types.append("uint256")
        values.append(nonce)
    elif nonce is not None:
        raise ValueError(f"{kind.value} digests do not carry a nonce")
    return keccak256(abi.encode(types, values))


def add_validator_digest(account: str, validator: str, nonce: int) -> bytes:
    return digest(ActionKind.ADD_VALIDATOR, (validator,), account, nonce)


def remove_validator_digest(account: str, validator: str, nonce: int) -> bytes:
    return digest(ActionKind.REMOVE_VALIDATOR, (validator,), account, nonce)


def update_threshold_digest(account: str, threshold: int, nonce: int) -> bytes:
    return digest(ActionKind.UPDATE_THRESHOLD, (threshold,), account, nonce)


def transfer_digest(account: str, recipient: str, amount: int, reference: str) -> bytes:
    return digest(ActionKind.TRANSFER, (recipient, amount, reference), account)


def call_digest(
    account: str,
    target: str,
    value: int,
    function_signature: str,
    data: bytes,
    flag: int,
) -> bytes:
    return digest(
        ActionKind.CALL, (target, value, function_signature, bytes(data), flag), account,
    )

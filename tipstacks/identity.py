"""
identity.py - Unique display names bound to accounts

This module provides the identity registry and its registration planner:
1. normalize_username() - Canonical key used for uniqueness (case-insensitive)
2. validate_username_length() - Length bounds check
3. compute_identity_registration() - Pure planner for set-user-identity
4. IdentityRegistry - Forward (account -> Identity) and reverse (name -> account) maps

Rules, in order:
    - Only the account itself may set its identity         -> Unauthorized
    - Username length within the deployment bounds          -> InvalidUsernameLength
    - Username not held by a different account              -> UsernameTaken

Usernames are ASCII strings; anything else is rejected with InvalidUsernameLength,
the one username-shape error. Uniqueness ignores ASCII case only (str.lower()).

A successful registration is verified immediately. An account may register again
under a new name; its previous name is released in the same call.
"""

from __future__ import annotations
from typing import Dict, List, Optional

from .core import (
    ContractView, Identity, PendingCall, StateChange,
    Unauthorized, InvalidUsernameLength, UsernameTaken,
    EMPTY_IDENTITY, STORE_IDENTITY, STORE_USERNAMES, FN_SET_USER_IDENTITY,
    USERNAME_MIN_LENGTH, USERNAME_MAX_LENGTH,
    build_call,
)


def normalize_username(username: str) -> str:
    """Reverse-map key for a username: "Alice" and "alice" are the same name."""
    return username.lower()


def validate_username_length(
    username: str,
    min_length: int = USERNAME_MIN_LENGTH,
    max_length: int = USERNAME_MAX_LENGTH,
) -> None:
    """
    Raises:
        InvalidUsernameLength: If username is not an ASCII string, or
            len(username) is outside [min_length, max_length].
    """
    if not isinstance(username, str):
        raise InvalidUsernameLength(f"username must be a string, got {type(username)}")
    if not username.isascii():
        raise InvalidUsernameLength(f"username must be ASCII, got {username!r}")
    if not min_length <= len(username) <= max_length:
        raise InvalidUsernameLength(
            f"username length {len(username)} outside [{min_length}, {max_length}]"
        )


def compute_identity_registration(
    view: ContractView,
    caller: str,
    account: str,
    username: str,
) -> PendingCall:
    """
    Plan a set-user-identity call.

    Args:
        view: Read-only contract access
        caller: Authenticated calling account
        account: Account whose identity is being set (must equal caller)
        username: Requested display name

    Returns:
        PendingCall containing, in order:
        - release of the account's previous name (if it is changing)
        - the new Identity(username, verified=True)
        - the reverse entry for the new name (if not already held by account)
        Re-setting the exact same name yields a call with no changes.

    Raises:
        Unauthorized: If account != caller.
        InvalidUsernameLength: If the username length is out of bounds.
        UsernameTaken: If another account holds the name.
    """
    if account != caller:
        raise Unauthorized(f"{caller} cannot set the identity of {account}")

    config = view.config
    validate_username_length(username, config.username_min_length, config.username_max_length)

    key = normalize_username(username)
    owner = view.get_username_owner(key)
    if owner is not None and owner != account:
        raise UsernameTaken(f"username {username!r} is held by another account")

    current = view.get_user_identity(account)
    new_identity = Identity(username=username, verified=True)
    changes: List[StateChange] = []

    if current.username:
        old_key = normalize_username(current.username)
        if old_key != key:
            changes.append(StateChange(
                store=STORE_USERNAMES, key=old_key, old_value=account, new_value=None,
            ))

    if current != new_identity:
        changes.append(StateChange(
            store=STORE_IDENTITY,
            key=account,
            old_value=current if current.username else None,
            new_value=new_identity,
        ))

    if owner is None:
        changes.append(StateChange(
            store=STORE_USERNAMES, key=key, old_value=None, new_value=account,
        ))

    return build_call(FN_SET_USER_IDENTITY, caller, (account, username), changes)


class IdentityRegistry:
    """
    Bidirectional account <-> username mapping.

    Invariant: the reverse map holds at most one account per normalized
    username, and every reverse entry points at an account whose identity
    carries that name.
    """

    def __init__(
        self,
        identities: Optional[Dict[str, Identity]] = None,
        owners: Optional[Dict[str, str]] = None,
    ):
        self._identities: Dict[str, Identity] = dict(identities or {})
        self._owners: Dict[str, str] = dict(owners or {})

    def get(self, account: str) -> Identity:
        """Identity for account, EMPTY_IDENTITY if none registered."""
        return self._identities.get(account, EMPTY_IDENTITY)

    def has_identity(self, account: str) -> bool:
        return account in self._identities

    def owner_of(self, username: str) -> Optional[str]:
        return self._owners.get(normalize_username(username))

    def __len__(self) -> int:
        return len(self._identities)

    def snapshot(self) -> Dict[str, Dict]:
        return {
            'identities': dict(self._identities),
            'usernames': dict(self._owners),
        }

    def apply(self, change: StateChange) -> None:
        """
        Apply a STORE_IDENTITY or STORE_USERNAMES change.

        Raises:
            ValueError: On a stale old_value, an unknown store, or a change that
                would give one username two owners.
        """
        if change.store == STORE_IDENTITY:
            current = self._identities.get(change.key)
            if change.old_value != current:
                raise ValueError(
                    f"Stale identity for {change.key}: expected {change.old_value!r}, found {current!r}"
                )
            if change.new_value is None:
                raise ValueError("Identities are never deleted")
            self._identities[change.key] = change.new_value
        elif change.store == STORE_USERNAMES:
            current_owner = self._owners.get(change.key)
            if change.old_value != current_owner:
                raise ValueError(
                    f"Username {change.key!r} owner changed: expected {change.old_value!r}, "
                    f"found {current_owner!r}"
                )
            if change.new_value is None:
                del self._owners[change.key]
            else:
                self._owners[change.key] = change.new_value
        else:
            raise ValueError(f"IdentityRegistry cannot apply a {change.store} change")

    def clone(self) -> IdentityRegistry:
        return IdentityRegistry(self._identities, self._owners)

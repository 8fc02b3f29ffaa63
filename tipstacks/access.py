"""
access.py - Administrator and platform account checks.

AccessControl is read-only reference data built from the deployment config.
It is consulted by every gated operation; there is no way to rotate the
administrator once the contract is deployed.
"""

from __future__ import annotations
from dataclasses import dataclass

from .config import DeploymentConfig
from .core import Unauthorized


@dataclass(frozen=True, slots=True)
class AccessControl:
    """
    Privileged accounts of a deployed contract.

    Attributes:
        admin: The administrator account.
        platform: The platform's own account (often the administrator).
        contract_account: The contract's escrow account.
    """
    admin: str
    platform: str
    contract_account: str

    @classmethod
    def from_config(cls, config: DeploymentConfig) -> AccessControl:
        return cls(
            admin=config.admin,
            platform=config.platform,
            contract_account=config.contract_account,
        )

    def is_admin(self, account: str) -> bool:
        return account == self.admin

    def is_platform(self, account: str) -> bool:
        return account == self.platform

    def is_contract(self, account: str) -> bool:
        return account == self.contract_account

    def is_restricted_recipient(self, account: str) -> bool:
        """Tips may not be sent to the platform, the administrator or the escrow."""
        return self.is_platform(account) or self.is_admin(account) or self.is_contract(account)

    def require_admin(self, caller: str) -> None:
        """
        Raises:
            Unauthorized: If caller is not the administrator.
        """
        if not self.is_admin(caller):
            raise Unauthorized(f"{caller} is not the contract administrator")

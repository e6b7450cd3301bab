# -*- coding: utf-8 -*-
"""Smart account provisioning."""

from deposit_refund_relay.services.accounts.account_provisioning import (
    AccountProvisioningService,
    ProvisionedAccount,
)

__all__ = ["AccountProvisioningService", "ProvisionedAccount"]

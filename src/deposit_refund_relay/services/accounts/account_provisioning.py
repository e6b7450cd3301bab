# -*- coding: utf-8 -*-
"""Account provisioning: deploy and fund a WebAuthn smart account, then start tracking its deposits."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from deposit_refund_relay.contracts.abi import (
    decode_address_result,
    encode_clone_and_initialize,
    encode_initialize_webauthn,
    encode_predict_address,
    hex_to_bytes,
)
from deposit_refund_relay.exceptions import AccountProvisioningError
from deposit_refund_relay.utils.validation import mask_address

if TYPE_CHECKING:
    from deposit_refund_relay.clients.rpc_client import RpcClient
    from deposit_refund_relay.config import Settings
    from deposit_refund_relay.models.account_session import AccountSession
    from deposit_refund_relay.persistence.repositories.interfaces import (
        IAccountSessionRepository,
    )
    from deposit_refund_relay.services.deposits import DepositWatcherService
    from deposit_refund_relay.services.submission import SubmissionResult, TransactionSubmitter


@dataclass(frozen=True, slots=True)
class ProvisionedAccount:
    """Result of create_account."""

    account_address: str
    deployment_tx_hash: str | None
    funding_tx_hash: str | None
    session: AccountSession

    @property
    def already_deployed(self) -> bool:
        return self.deployment_tx_hash is None


class AccountProvisioningService:
    """Creates (or locates) the smart account for a passkey and registers its session."""

    def __init__(
        self,
        rpc_client: RpcClient,
        submitter: TransactionSubmitter,
        session_repository: IAccountSessionRepository,
        watcher: DepositWatcherService,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the provisioning service.

        Args:
            rpc_client: JSON-RPC client (injected).
            submitter: Transaction submitter for deployment and funding (injected).
            session_repository: Session registry (injected).
            watcher: Deposit watcher service (injected).
            settings: Uses chain.factory_address and relayer.account_funding_wei.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._rpc = rpc_client
        self._submitter = submitter
        self._sessions = session_repository
        self._watcher = watcher
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def predict_address(self, init_call_data: bytes) -> str:
        """Return the counterfactual account address for the initializer calldata."""
        factory = self._settings.chain.factory_address
        result = await self._rpc.eth_call(
            factory, "0x" + encode_predict_address(init_call_data).hex()
        )
        return decode_address_result(hex_to_bytes(result))

    async def create_account(self, credential_id: str, qx: bytes, qy: bytes) -> ProvisionedAccount:
        """Deploy and fund the account if needed, then upsert its session and start watching.

        An account that already has code is returned as is (no deployment, no funding).

        Raises:
            AccountProvisioningError: Deployment or funding did not confirm.
            RpcAPIError / RpcResponseError: The address prediction call failed.
        """
        init_call_data = encode_initialize_webauthn(qx, qy)
        account_address = await self.predict_address(init_call_data)
        code = await self._rpc.get_code(account_address)

        deployment_tx_hash: str | None = None
        funding_tx_hash: str | None = None
        if code in ("0x", "0x0", ""):
            deployment = await self._submitter.submit_call(
                self._settings.chain.factory_address,
                encode_clone_and_initialize(init_call_data),
            )
            self._require_confirmed(deployment, "deployment", account_address)
            deployment_tx_hash = deployment.tx_hash

            funding = await self._submitter.submit_call(
                account_address,
                b"",
                value=self._settings.relayer.account_funding_wei,
            )
            self._require_confirmed(funding, "funding", account_address)
            funding_tx_hash = funding.tx_hash
        else:
            self._logger.info(
                "account_already_deployed",
                account_masked=mask_address(account_address),
            )

        session = await self._sessions.upsert(account_address, credential_id)
        try:
            await self._watcher.ensure_watching(session)
        except Exception:
            # The account exists on chain; the watcher recovers on the next deposits read.
            self._logger.exception(
                "account_watcher_start_failed",
                account_masked=mask_address(account_address),
            )

        self._logger.info(
            "account_provisioned",
            account_masked=mask_address(account_address),
            deployment_tx_hash=deployment_tx_hash,
            funding_tx_hash=funding_tx_hash,
        )
        return ProvisionedAccount(
            account_address=account_address,
            deployment_tx_hash=deployment_tx_hash,
            funding_tx_hash=funding_tx_hash,
            session=session,
        )

    def _require_confirmed(self, result: SubmissionResult, stage: str, account_address: str) -> None:
        if result.confirmed:
            return
        self._logger.error(
            "account_provisioning_failed",
            stage=stage,
            status=result.status.value,
            tx_hash=result.tx_hash,
            account_masked=mask_address(account_address),
            error_message=result.error,
        )
        raise AccountProvisioningError(
            f"Account {stage} failed: {result.error or result.status.value}",
            stage=stage,
            status=result.status.value,
            tx_hash=result.tx_hash,
        )

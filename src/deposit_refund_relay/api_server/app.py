# -*- coding: utf-8 -*-
"""HTTP API (aiohttp.web): account creation, deposit ledger reads and refunds."""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog
from aiohttp import web
from pydantic import ValidationError
from structlog.contextvars import bound_contextvars

from deposit_refund_relay.api_server.schemas import (
    CreateAccountBody,
    RefundRequestBody,
    serialize_deposit,
)
from deposit_refund_relay.exceptions import (
    AccountProvisioningError,
    RefundRejectedError,
    RefundRejection,
    RelayError,
)
from deposit_refund_relay.services.submission import SubmissionStatus
from deposit_refund_relay.utils.validation import is_hex_address, mask_address

if TYPE_CHECKING:
    from deposit_refund_relay.config import Settings
    from deposit_refund_relay.persistence.repositories.interfaces import (
        IAccountSessionRepository,
    )
    from deposit_refund_relay.services.accounts import AccountProvisioningService
    from deposit_refund_relay.services.deposits import DepositWatcherService
    from deposit_refund_relay.services.refund import RefundService

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

# status -> (http status, reason, message)
_SUBMISSION_ERRORS: dict[SubmissionStatus, tuple[int, str, str]] = {
    SubmissionStatus.SIMULATION_FAILED: (422, "simulation_failed", "Simulation failed"),
    SubmissionStatus.REVERTED: (502, "execution_reverted", "Execution reverted"),
    SubmissionStatus.TRANSPORT_FAILED: (502, "ledger_unavailable", "Ledger unavailable"),
}


def error_response(message: str, reason: str, status: int) -> web.Response:
    return web.json_response({"error": message, "reason": reason}, status=status)


class RelayApi:
    """Request handlers; every dependency is injected."""

    def __init__(
        self,
        settings: Settings,
        session_repository: IAccountSessionRepository,
        watcher: DepositWatcherService,
        refund_service: RefundService,
        provisioning: AccountProvisioningService,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._settings = settings
        self._sessions = session_repository
        self._watcher = watcher
        self._refunds = refund_service
        self._provisioning = provisioning
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def health_handler(self, request: web.Request) -> web.Response:
        sessions = await self._sessions.list_all()
        return web.json_response({"status": "ok", "sessions": len(sessions)})

    async def deposits_handler(self, request: web.Request) -> web.Response:
        """GET /account/{address}/deposits: refresh the watcher, then return the ledger."""
        address = request.match_info.get("address", "")
        if not is_hex_address(address):
            return error_response("Invalid account address", "invalid_address", 400)

        deposits_settings = self._settings.deposits
        body: dict[str, Any] = {
            "deposits": [],
            "minDeposit": str(deposits_settings.min_deposit),
            "decimals": self._settings.chain.token_decimals,
            "watching": False,
        }
        session = await self._sessions.get(address)
        if session is None:
            return web.json_response(body)

        try:
            await self._watcher.ensure_watching(session)
        except RelayError as e:
            self._logger.warning(
                "deposits_refresh_failed",
                account_masked=mask_address(address),
                error_message=str(e),
                watcher_state=session.watcher_state.value,
            )
            return error_response("Ledger unavailable", "ledger_unavailable", 502)

        body["deposits"] = [serialize_deposit(record) for record in session.deposits]
        body["watching"] = session.is_watching
        return web.json_response(body)

    async def refund_handler(self, request: web.Request) -> web.Response:
        """POST /account/refund."""
        try:
            payload = RefundRequestBody.model_validate_json(await request.read())
        except ValidationError as e:
            self._logger.info("refund_request_malformed", errors=e.error_count())
            reason = RefundRejection.MALFORMED_REQUEST
            return error_response(reason.message, reason.value, reason.http_status)

        try:
            result = await self._refunds.refund(payload.to_domain())
        except RefundRejectedError as e:
            return error_response(e.reason.message, e.reason.value, e.reason.http_status)

        if result.confirmed:
            return web.json_response({"status": "success", "hash": result.tx_hash})
        status, reason, message = _SUBMISSION_ERRORS[result.status]
        return error_response(f"Refund failed: {message}", reason, status)

    async def create_account_handler(self, request: web.Request) -> web.Response:
        """POST /account/create."""
        try:
            payload = CreateAccountBody.model_validate_json(await request.read())
        except ValidationError as e:
            self._logger.info("create_account_request_malformed", errors=e.error_count())
            return error_response("Malformed account request", "malformed_request", 400)

        public_key = payload.public_key
        try:
            account = await self._provisioning.create_account(
                payload.credential_id, public_key.x, public_key.y
            )
        except AccountProvisioningError as e:
            status, reason, message = _SUBMISSION_ERRORS[SubmissionStatus(e.status)]
            return error_response(f"Failed to create account: {message}", reason, status)
        except RelayError as e:
            self._logger.warning("create_account_failed", error_message=str(e))
            return error_response("Failed to create account: Ledger unavailable", "ledger_unavailable", 502)

        return web.json_response(
            {
                "success": True,
                "accountAddress": account.account_address,
                "transactionHash": account.deployment_tx_hash,
                "fundingTransactionHash": account.funding_tx_hash,
                "publicKey": {"qx": "0x" + public_key.x.hex(), "qy": "0x" + public_key.y.hex()},
            }
        )

    def create_app(self) -> web.Application:
        """Build the aiohttp application with request-context and CORS middlewares."""

        @web.middleware
        async def request_context_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
            with bound_contextvars(
                http_request_id=uuid.uuid4().hex[:12],
                http_method=request.method,
                http_path=request.path,
            ):
                return await handler(request)

        allow_origin = self._settings.server.cors_allow_origin

        @web.middleware
        async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
            if request.method == "OPTIONS":
                response: web.StreamResponse = web.Response(status=204)
            else:
                try:
                    response = await handler(request)
                except web.HTTPException as ex:
                    response = ex
            if allow_origin:
                response.headers["Access-Control-Allow-Origin"] = allow_origin
                response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
                response.headers["Access-Control-Allow-Headers"] = "Content-Type,Authorization"
                response.headers["Access-Control-Max-Age"] = "86400"
            return response

        app = web.Application(middlewares=[request_context_middleware, cors_middleware])
        app.router.add_get("/health", self.health_handler)
        app.router.add_get("/account/{address}/deposits", self.deposits_handler)
        app.router.add_post("/account/refund", self.refund_handler)
        app.router.add_post("/account/create", self.create_account_handler)
        return app

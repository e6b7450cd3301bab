"""Contract ABI encoders/decoders."""

from deposit_refund_relay.contracts.abi import (
    BATCH_EXECUTE_MODE,
    TRANSFER_TOPIC,
    AccountExecuteCall,
    ExecutionCall,
    TokenTransferCall,
    TransferLog,
    UserOperationOutcome,
    decode_account_execute,
    decode_address_result,
    decode_execution_batch,
    decode_token_transfer,
    decode_transfer_log,
    decode_user_operation_events,
    encode_account_execute,
    encode_clone_and_initialize,
    encode_handle_ops,
    encode_initialize_webauthn,
    encode_predict_address,
    encode_token_transfer,
    encode_webauthn_signature,
    hex_to_bytes,
    topic_for_address,
)

__all__ = [
    "BATCH_EXECUTE_MODE",
    "TRANSFER_TOPIC",
    "AccountExecuteCall",
    "ExecutionCall",
    "TokenTransferCall",
    "TransferLog",
    "UserOperationOutcome",
    "decode_account_execute",
    "decode_address_result",
    "decode_execution_batch",
    "decode_token_transfer",
    "decode_transfer_log",
    "decode_user_operation_events",
    "encode_account_execute",
    "encode_clone_and_initialize",
    "encode_handle_ops",
    "encode_initialize_webauthn",
    "encode_predict_address",
    "encode_token_transfer",
    "encode_webauthn_signature",
    "hex_to_bytes",
    "topic_for_address",
]

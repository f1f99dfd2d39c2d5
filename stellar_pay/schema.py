from __future__ import annotations

from typing import Any, Dict

import jsonschema  # type: ignore[import-untyped]

# Only the fields the clients read are constrained; Horizon adds more.
ACCOUNT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["sequence", "balances"],
    "properties": {
        "sequence": {"type": "string", "pattern": "^[0-9]+$"},
        "balances": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["balance", "asset_type"],
                "properties": {
                    "balance": {"type": "string"},
                    "asset_type": {"type": "string"},
                },
            },
        },
    },
}

SUBMIT_SUCCESS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["hash"],
    "properties": {
        "hash": {"type": "string", "pattern": "^[0-9a-f]{64}$"},
        "successful": {"type": "boolean"},
    },
}

RESULT_CODES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "transaction": {"type": "string"},
        "operations": {"type": "array", "items": {"type": "string"}},
    },
}

JSONRPC_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "result": {"type": "object"},
        "error": {},
    },
}


def is_valid(instance: Any, schema: Dict[str, Any]) -> bool:
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError:
        return False
    return True

from __future__ import annotations

import json
import logging
import sys
import uuid

from contract_ledger.utils.logging import _json_formatter

EXPECTED_CLOSED = 3
EXPECTED_CONTRACTS = 1000


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_extra_fields() -> None:
    record = _record("Closed active contracts")
    record.closed = EXPECTED_CLOSED
    record.client_id = "c-1"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "Closed active contracts"
    assert payload["closed"] == EXPECTED_CLOSED
    assert payload["client_id"] == "c-1"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"contracts": EXPECTED_CONTRACTS}

    payload = json.loads(_json_formatter(record))

    assert payload["contracts"] == EXPECTED_CONTRACTS
    assert "extra" not in payload


def test_json_formatter_stringifies_non_json_values() -> None:
    record = _record()
    client_id = uuid.uuid4()
    record.client_id = client_id

    payload = json.loads(_json_formatter(record))

    assert payload["client_id"] == str(client_id)


def test_json_formatter_includes_exception_text() -> None:
    try:
        raise RuntimeError("refresh exploded")
    except RuntimeError:
        record = logging.LogRecord(
            name="test.logger",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="[REFRESH FAILED] previous snapshot kept",
            args=(),
            exc_info=sys.exc_info(),
        )

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "ERROR"
    assert "refresh exploded" in payload["exc_info"]

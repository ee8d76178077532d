import json
import logging
from shared.core.logging_config import SecurityFilter, StructuredFormatter, set_request_context, user_id_var

def make_record(msg, *args):
    return logging.LogRecord("tracking", logging.INFO, __file__, 1, msg, args, None)

def test_security_filter_redacts_tokens():
    record = make_record("bootstrap with token=%s", "super-secret")
    SecurityFilter().filter(record)
    assert "super-secret" not in record.getMessage()
    assert "***REDACTED***" in record.getMessage()

def test_security_filter_redacts_bearer_header():
    record = make_record("header was Bearer abc.def.ghi")
    SecurityFilter().filter(record)
    assert "abc.def.ghi" not in record.getMessage()

def test_formatter_emits_json_with_trace():
    token = user_id_var.set(None)
    try:
        set_request_context(request_id="req-1", user_id="alice")
        record = make_record("Shipment created: %s", "TRK-1")
        record.extra_fields = {"tracking_number": "TRK-1"}
        payload = json.loads(StructuredFormatter().format(record))
    finally:
        user_id_var.reset(token)
    assert payload["message"] == "Shipment created: TRK-1"
    assert payload["trace"]["request_id"] == "req-1"
    assert payload["trace"]["user_id"] == "alice"
    assert payload["custom"] == {"tracking_number": "TRK-1"}

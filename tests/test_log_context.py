import json
import logging

from gbif_core.config import LoggingSettings
from gbif_core.log_context import MASK, LogContext, configure_logging, mask_sensitive


def test_mask_sensitive_masks_credentials_at_any_depth():
    masked = mask_sensitive(
        {
            "username": "ada",
            "password": "s3cret",
            "headers": {"Authorization": "Basic abc", "Accept": "application/json"},
            "items": [{"api_key": "k"}, {"auth": "x"}],
        }
    )

    assert masked == {
        "username": "ada",
        "password": MASK,
        "headers": {"Authorization": MASK, "Accept": "application/json"},
        "items": [{"api_key": MASK}, {"auth": MASK}],
    }


def test_gbif_keys_are_not_masked():
    params = {"taxonKey": 212, "datasetKey": "abc", "author": "Linnaeus"}
    assert mask_sensitive(params) == params


def test_request_log_masks_parameters(caplog):
    log = LogContext(LoggingSettings(level="debug"), name="gbif_mcp.test.mask")
    with caplog.at_level(logging.INFO, logger="gbif_mcp.test.mask"):
        log.request("gbif_species_get", {"key": 1, "token": "abc"})

    assert "gbif_species_get called with" in caplog.text
    assert "abc" not in caplog.text
    assert MASK in caplog.text


def test_masking_can_be_disabled(caplog):
    log = LogContext(LoggingSettings(mask_sensitive=False), name="gbif_mcp.test.nomask")
    with caplog.at_level(logging.INFO, logger="gbif_mcp.test.nomask"):
        log.info("Configured", password="visible")

    assert "visible" in caplog.text


def test_json_format_renders_one_object(caplog):
    log = LogContext(LoggingSettings(format="json"), name="gbif_mcp.test.json")
    with caplog.at_level(logging.INFO, logger="gbif_mcp.test.json"):
        log.info("Registered tools", count=55)

    record = json.loads(caplog.records[-1].getMessage())
    assert record == {"message": "Registered tools", "count": 55}


def test_debug_is_suppressed_at_info_level(caplog):
    with caplog.at_level(logging.DEBUG, logger="gbif_mcp.test.level"):
        # LogContext applies its own level to the named logger
        log = LogContext(LoggingSettings(level="info"), name="gbif_mcp.test.level")
        log.debug("hidden")
    assert "hidden" not in caplog.text


def test_child_logger_name():
    assert LogContext(name="gbif_mcp").child("client").name == "gbif_mcp.client"


def test_configure_logging_is_idempotent():
    root = logging.getLogger()
    before = len(root.handlers)
    configure_logging(LoggingSettings())
    configure_logging(LoggingSettings())
    assert len(root.handlers) <= before + 1

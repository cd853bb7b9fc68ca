import json
import logging

from docchat.logging_config import AUDIT_LOGGER_NAME, MinimalJSONFormatter, configure_logging


def _record(msg, args=None) -> logging.LogRecord:
    return logging.LogRecord("docchat.test", logging.INFO, __file__, 1, msg, args, None)


def test_formatter_merges_dict_messages():
    payload = json.loads(MinimalJSONFormatter().format(_record({"event": "document.processed", "chunks": 2})))

    assert payload["event"] == "document.processed"
    assert payload["chunks"] == 2
    assert payload["level"] == "INFO"
    assert payload["module"] == "docchat.test"
    assert payload["ts"].endswith("Z")


def test_formatter_renders_plain_messages():
    payload = json.loads(MinimalJSONFormatter().format(_record("hello %s", ("world",))))

    assert payload["message"] == "hello world"


def test_audit_log_is_written_to_the_log_directory(tmp_path):
    try:
        configure_logging(level="INFO", log_dir=tmp_path)
        audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        audit_logger.info({"event": "document.processed", "file_name": "lease.txt"})
        for handler in audit_logger.handlers:
            handler.flush()

        lines = (tmp_path / "ingest_audit.log").read_text(encoding="utf-8").splitlines()
    finally:
        configure_logging()

    entry = json.loads(lines[-1])
    assert entry["event"] == "document.processed"
    assert entry["file_name"] == "lease.txt"

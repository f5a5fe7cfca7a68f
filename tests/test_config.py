import logging

import pytest

from ripple import config


def test_defaults_pass_validation():
    config.validate_config()


def test_unknown_log_format_is_rejected(monkeypatch):
    monkeypatch.setattr(config, "LOG_FORMAT", "xml")

    with pytest.raises(ValueError, match="LOG_FORMAT"):
        config.validate_config()


def test_errors_are_reported_together(monkeypatch):
    monkeypatch.setattr(config, "SCORE_THRESHOLD", 0.0)
    monkeypatch.setattr(config, "COLLECTION_MAX_PENDING", 0)

    with pytest.raises(ValueError) as excinfo:
        config.validate_config()

    assert "SCORE_THRESHOLD" in str(excinfo.value)
    assert "COLLECTION_MAX_PENDING" in str(excinfo.value)


def test_setup_logging_applies_format_and_quiets_http(monkeypatch, tmp_path):
    log_file = tmp_path / "ripple.log"
    monkeypatch.setattr(config, "LOG_FORMAT", "json")
    monkeypatch.setattr(config, "LOG_LEVEL", "DEBUG")
    monkeypatch.setattr(config, "LOG_FILE", str(log_file))

    config.setup_logging()
    try:
        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert all(h.formatter._fmt == config.LOG_FORMATS["json"] for h in root.handlers)
        assert logging.getLogger("ripple").level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        monkeypatch.undo()
        config.setup_logging()

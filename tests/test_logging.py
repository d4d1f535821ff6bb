import logging

import pytest

from interview_coach.utils import setup_logging


def test_setup_logging_creates_directory_and_file(tmp_path, restore_root_logging):
    log_file = tmp_path / "runs" / "interview.log"

    assert setup_logging(str(log_file), "INFO") == str(log_file)

    logging.getLogger("session").info("State idle -> opening")
    logging.getLogger("session").debug("not written at INFO")
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = log_file.read_text()
    assert "INFO session - State idle -> opening" in content
    assert "not written" not in content


def test_console_only_shows_critical(tmp_path, restore_root_logging):
    setup_logging(str(tmp_path / "interview.log"))

    stream_handlers = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].level == logging.CRITICAL


def test_unknown_level_is_rejected(tmp_path, restore_root_logging):
    with pytest.raises(ValueError, match="LOUD"):
        setup_logging(str(tmp_path / "interview.log"), "LOUD")

import logging
from unittest.mock import patch

from parabatch.utils.logging_config import DEFAULT_FORMAT, THREADED_FORMAT, setup_logging


def test_setup_logging_defaults():
    with patch("logging.basicConfig") as basic_config:
        setup_logging()

    basic_config.assert_called_once_with(level=logging.INFO, format=DEFAULT_FORMAT)


def test_unknown_level_falls_back_to_info():
    with patch("logging.basicConfig") as basic_config:
        setup_logging("chatty")

    assert basic_config.call_args.kwargs["level"] == logging.INFO


def test_log_file_parent_is_created(tmp_path):
    log_file = tmp_path / "logs" / "nested" / "run.log"
    with patch("logging.basicConfig") as basic_config:
        setup_logging("debug", log_file=str(log_file), show_threads=True)

    assert log_file.parent.is_dir()
    kwargs = basic_config.call_args.kwargs
    assert kwargs["filename"] == str(log_file)
    assert kwargs["level"] == logging.DEBUG
    assert kwargs["format"] == THREADED_FORMAT

import logging

from mrf_validator.config.constants import LOG_LEVEL_ENV
from mrf_validator.utils.logger import MRFLogger, get_logger


def close(mrf_logger):
    for handler in mrf_logger.logger.handlers:
        handler.close()
    mrf_logger.logger.handlers = []


def test_file_logging_with_context(tmp_path):
    mrf_logger = MRFLogger("file_test", log_dir=str(tmp_path), log_level="DEBUG", enable_console=False)

    mrf_logger.log_phase("header labels", 0, columns=7)
    mrf_logger.error("Unable to read input", source="charges.csv")
    close(mrf_logger)

    main_log = next(tmp_path.glob("file_test_2*.log")).read_text(encoding="utf-8")
    error_log = next(tmp_path.glob("file_test_errors_*.log")).read_text(encoding="utf-8")

    assert 'Validation phase | {"phase": "header labels", "row": 0, "columns": 7}' in main_log
    assert "Unable to read input" in main_log
    assert "Unable to read input" in error_log
    assert "Validation phase" not in error_log


def test_long_values_are_shortened(tmp_path):
    mrf_logger = MRFLogger("shorten_test", log_dir=str(tmp_path), enable_console=False)

    mrf_logger.info("Row value", value="x" * 500)
    close(mrf_logger)

    content = next(tmp_path.glob("shorten_test_2*.log")).read_text(encoding="utf-8")
    assert "x" * MRFLogger.MAX_VALUE_LENGTH + "..." in content
    assert "x" * (MRFLogger.MAX_VALUE_LENGTH + 1) not in content


def test_no_log_files_without_directory(tmp_path):
    mrf_logger = MRFLogger("console_only", enable_console=False)

    assert mrf_logger.logger.handlers == []


def test_get_logger_reads_level_from_environment(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "DEBUG")

    mrf_logger = get_logger("environment_level_test", enable_console=False)

    assert mrf_logger.logger.level == logging.DEBUG
    assert get_logger("environment_level_test") is mrf_logger

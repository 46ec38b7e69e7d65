import logging

from doc_consolidator.core.sanitize import (
    LOGGER_NAME, SanitizedFormatter, get_logger, redact_user_paths,
    sanitize_path_for_log, setup_logging
)


def test_redacts_home_directories():
    assert redact_user_paths("/home/alice/docs/a.pdf") == "/home/<user>/docs/a.pdf"
    assert redact_user_paths("/Users/bob/Desktop/b.csv") == "/Users/<user>/Desktop/b.csv"
    assert redact_user_paths(r"C:\Users\carol\Documents\c.docx") == r"C:\Users\<user>\Documents\c.docx"


def test_other_paths_untouched():
    assert sanitize_path_for_log("/tmp/merged.pdf") == "/tmp/merged.pdf"


def test_formatter_redacts_arguments_and_restores_record():
    formatter = SanitizedFormatter(fmt="%(message)s")
    record = logging.LogRecord(
        "test", logging.INFO, __file__, 1, "Saved %s", ("/home/alice/out.pdf",), None
    )

    assert formatter.format(record) == "Saved /home/<user>/out.pdf"
    assert record.msg == "Saved %s"
    assert record.args == ("/home/alice/out.pdf",)


def test_formatter_can_keep_usernames():
    formatter = SanitizedFormatter(fmt="%(message)s", redact_usernames=False)
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "/home/alice/x", (), None)

    assert formatter.format(record) == "/home/alice/x"


def test_setup_logging_writes_sanitized_file(tmp_path):
    log_file = tmp_path / "app.log"
    logger = setup_logging(logging.DEBUG, log_file)
    try:
        get_logger().info("Opened /home/alice/report.pdf")
        for handler in logger.handlers:
            handler.flush()

        assert logger.name == LOGGER_NAME
        assert "/home/<user>/report.pdf" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

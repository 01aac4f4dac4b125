import logging

from todo_api.main import LOG_DATEFMT, configure_logging


def test_log_timestamps_are_utc(settings):
    configure_logging(settings)

    record = logging.LogRecord("todo_api", logging.INFO, __file__, 1, "hello", None, None)
    record.created = 0
    formatter = logging.Formatter(datefmt=LOG_DATEFMT)
    assert formatter.formatTime(record, LOG_DATEFMT) == "1970-01-01T00:00:00Z"

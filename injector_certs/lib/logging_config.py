"""JSON log output for injector-certs runs."""

import logging

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "injector_certs"

LOG_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})


class CustomJsonFormatter(JsonFormatter):
    """One JSON object per line, limited to LOG_FIELDS with levelname shown as level."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in LOG_FIELDS]:
            del log_record[key]


def _setup_logger() -> logging.Logger:
    """Attach a JSON stderr handler to the injector_certs logger, once.

    Library modules log through logging.getLogger(__name__), which lands
    here as children of LOGGER_NAME.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


LOGGER = _setup_logger()

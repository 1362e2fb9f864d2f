import atexit
import datetime as dt
import json
import logging
import logging.config
import os
import pathlib
from logging.handlers import RotatingFileHandler
from typing import Any, Optional


def _handler_by_name(name: str) -> Optional[logging.Handler]:
    for handler in logging.getLogger().handlers:
        if handler.get_name() == name:
            return handler
    return None


def setup_logging(config_path: Optional[str] = None) -> None:
    """
    Configures logging
    If `config_path` is given it is loaded as logging config, otherwise a
    'logging_config.json' in the working directory is used when present,
    and the default circuit_weave logging config if not
    """
    user_config_file = pathlib.Path("logging_config.json")

    if config_path is not None:
        config_file = pathlib.Path(config_path)
    elif user_config_file.is_file():
        config_file = user_config_file
    else:
        config_file = pathlib.Path(__file__).parent.resolve() / "config.json"
    with open(config_file) as f_in:
        config = json.load(f_in)
    logging.config.dictConfig(config)

    queue_handler = _handler_by_name("queue_handler")
    if queue_handler is not None:
        queue_handler.listener.start()
        atexit.register(queue_handler.listener.stop)


class CircuitWeaveJSONFormatter(logging.Formatter):
    """
    JSON formatter for circuit_weave log records
    Attributes:
        fmt_keys (dict): keys with values that will get logged

    Methods:
        format: Formats the records into a dict
        _prepare_log_dict: Prepares the actual log dict
    """

    def __init__(
        self,
        *,
        fmt_keys: dict[str, str] | None = None,
    ) -> None:
        super().__init__()
        self.fmt_keys = fmt_keys if fmt_keys is not None else {}

    def format(self, record: logging.LogRecord) -> str:
        message = self._prepare_log_dict(record)
        return json.dumps(message, default=str)

    def _prepare_log_dict(self, record: logging.LogRecord) -> dict:
        always_fields = {
            "message": record.getMessage(),
            "timestamp": dt.datetime.fromtimestamp(
                record.created, tz=dt.timezone.utc
            ).isoformat(),
        }

        if record.exc_info is not None:
            always_fields["exc_info"] = self.formatException(record.exc_info)

        if record.stack_info is not None:
            always_fields["stack_info"] = self.formatStack(record.stack_info)

        message = {
            key: msg_val
            if (msg_val := always_fields.pop(val, None)) is not None
            else getattr(record, val)
            for key, val in self.fmt_keys.items()
        }
        message.update(always_fields)

        for key, value in record.__dict__.items():
            if key not in message.keys():
                message[key] = value
        return message


class RotatingFileHandlerWithDir(RotatingFileHandler):
    """
    RotatingFileHandler that creates the log directory if it is missing
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        log_file_path = kwargs.get("filename")
        if log_file_path:
            log_dir = os.path.dirname(log_file_path)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)

        super().__init__(*args, **kwargs)

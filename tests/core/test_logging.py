# tests/core/test_logging.py
import json
import logging
import logging.handlers

from forgeblock import main
from forgeblock.core.logging_utils import JSONLineFormatter


def test_logging_config_installs_queue_handler_with_listener():
    main.configure_logging_from_file()

    queue_handlers = [h for h in logging.getLogger().handlers
                      if isinstance(h, logging.handlers.QueueHandler)]
    assert len(queue_handlers) == 1
    assert queue_handlers[0].listener is not None
    assert main._queue_handler_instance is queue_handlers[0]

    targets = {type(h) for h in queue_handlers[0].listener.handlers}
    assert logging.handlers.RotatingFileHandler in targets

def test_json_formatter_redacts_secrets():
    formatter = JSONLineFormatter(fmt_keys={"level": "levelname", "message": "message"})
    record = logging.LogRecord("forgeblock.test", logging.INFO, __file__, 1, "login", None, None)
    record.token = "eyJhbGciOi"
    record.user_id = 7

    line = json.loads(formatter.format(record))
    assert line["level"] == "INFO"
    assert line["message"] == "login"
    assert line["user_id"] == 7
    assert line["token"] != "eyJhbGciOi"

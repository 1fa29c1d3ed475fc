"""
fitstock/utils/logging.py
─────────────────────────
Configures logging for the app and the `fitstock` package logger.

app.logger is the `fitstock` logger (Flask names it after the import
package), so engine modules logging through logging.getLogger(__name__)
share these handlers.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from flask import request, has_request_context


class RequestFormatter(logging.Formatter):
    """
    Injects request info (URL, client IP) into log records
    when a request context is available.
    """
    def format(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
        else:
            record.url = None
            record.remote_addr = None
        return super().format(record)


def setup_logging(app):
    """
    Rotating file log at logs/app.log (5MB x 5) plus stdout.
    Format: timestamp | level | logger | client | url | message
    """
    handlers = []

    # 1. File handler (skipped when the filesystem is read-only)
    if app.config.get('LOG_TO_FILE', True):
        try:
            log_dir = os.path.join(app.root_path, '..', 'logs')
            os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'app.log'),
                maxBytes=5 * 1024 * 1024,
                backupCount=5
            )
            file_handler.setFormatter(RequestFormatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | %(url)s | %(message)s'
            ))
            file_handler.setLevel(logging.INFO)
            handlers.append(file_handler)
        except OSError:
            pass

    # 2. Stdout handler
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
    ))
    stream_handler.setLevel(logging.INFO)
    handlers.append(stream_handler)

    # create_app() may run many times in one process (tests)
    for old in list(app.logger.handlers):
        app.logger.removeHandler(old)
    for handler in handlers:
        app.logger.addHandler(handler)
    app.logger.setLevel(logging.INFO)
    app.logger.info("FitStock Manager startup")

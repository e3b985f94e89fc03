"""Logging setup: one line per event, stamped with session id and task."""
import logging
import os
from logging.handlers import TimedRotatingFileHandler

import requests
from flask import g, has_request_context, request, session

LOG_FORMAT = '%(asctime)s-SID[%(sid)s]-[%(levelname)s] TASK[%(task)s]-%(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class RequestContextFilter(logging.Filter):
    """Fills `sid` and `task` so every handler can use LOG_FORMAT."""

    def filter(self, record):
        sid = ''
        task = getattr(record, 'task', None)
        if has_request_context():
            sid = session.get('session_id', '')
            if task is None:
                task = getattr(g, 'task', None) or request.endpoint
        record.sid = sid
        record.task = task or record.name
        return True


class TelegramAlertHandler(logging.Handler):
    """Posts each record to an operators' Telegram group."""

    API_URL = 'https://api.telegram.org/bot{token}/sendMessage'

    def __init__(self, token, chat_id, level=logging.WARNING, timeout=5):
        super().__init__(level)
        self.url = self.API_URL.format(token=token)
        self.chat_id = chat_id
        self.timeout = timeout

    def emit(self, record):
        try:
            response = requests.post(
                self.url,
                json={'chat_id': self.chat_id, 'text': self.format(record)},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except Exception:
            self.handleError(record)


def configure_logging(app):
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    context_filter = RequestContextFilter()

    handlers = [logging.StreamHandler()]
    log_file = app.config.get('LOG_FILE')
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(TimedRotatingFileHandler(
            log_file,
            when='midnight',
            backupCount=app.config.get('LOG_RETENTION_DAYS', 14),
            encoding='utf-8',
        ))

    token = app.config.get('TELEGRAM_API_KEY')
    chat_id = app.config.get('TELEGRAM_GROUP_ID')
    if token and chat_id:
        handlers.append(TelegramAlertHandler(token, chat_id, level=app.config.get('ALERT_LEVEL', 'WARNING')))

    package_logger = logging.getLogger('labsite')
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        package_logger.addHandler(handler)
    package_logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    package_logger.propagate = False

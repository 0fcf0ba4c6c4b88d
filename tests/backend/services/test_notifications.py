import logging
from datetime import datetime

import pytest
from fastapi import BackgroundTasks

from backend.services import notifications


def test_deliver_safely_logs_and_swallows_failures(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    def failing_send(*_args):
        raise ConnectionRefusedError('smtp down')

    monkeypatch.setattr(notifications, 'send_email', failing_send)

    with caplog.at_level(logging.ERROR, logger='backend.services.notifications'):
        notifications.deliver_safely('student@campus.edu', 'New Learning Session Created', 'body')

    assert 'Failed to send' in caplog.text


def test_send_email_is_skipped_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(notifications.config, 'NOTIFICATIONS_ENABLED', False)

    def unexpected_smtp(*_args, **_kwargs):
        raise AssertionError('SMTP should not be used')

    monkeypatch.setattr(notifications.smtplib, 'SMTP', unexpected_smtp)

    notifications.send_email('student@campus.edu', 'Subject', 'body')


def test_send_email_uses_configured_smtp(monkeypatch: pytest.MonkeyPatch) -> None:
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout):
            sent.append(('connect', host, port))

        def __enter__(self):
            return self

        def __exit__(self, *_exc):
            return False

        def starttls(self):
            sent.append(('starttls',))

        def login(self, user, password):
            sent.append(('login', user))

        def send_message(self, message):
            sent.append(('send', message['To'], message['Subject']))

    monkeypatch.setattr(notifications.config, 'NOTIFICATIONS_ENABLED', True)
    monkeypatch.setattr(notifications.config, 'SMTP_HOST', 'smtp.campus.edu')
    monkeypatch.setattr(notifications.config, 'SMTP_PORT', 2525)
    monkeypatch.setattr(notifications.config, 'SMTP_USE_TLS', True)
    monkeypatch.setattr(notifications.config, 'SMTP_USER', 'mailer')
    monkeypatch.setattr(notifications.smtplib, 'SMTP', FakeSMTP)

    notifications.send_email('teacher@campus.edu', 'Session Confirmed', 'body')

    assert sent == [
        ('connect', 'smtp.campus.edu', 2525),
        ('starttls',),
        ('login', 'mailer'),
        ('send', 'teacher@campus.edu', 'Session Confirmed'),
    ]


def test_notify_session_created_queues_background_delivery() -> None:
    background_tasks = BackgroundTasks()

    notifications.notify_session_created(
        background_tasks,
        'student@campus.edu',
        'React basics',
        'Teacher',
        datetime(2025, 1, 10, 10, 0),
    )

    task = background_tasks.tasks[0]
    assert task.func is notifications.deliver_safely
    assert task.args[:2] == ('student@campus.edu', 'New Learning Session Created')
    assert 'Teacher: Teacher' in task.args[2]
    assert '2025-01-10 10:00' in task.args[2]

"""Outbound session notifications.

Notifications are queued as FastAPI background tasks once a transition has
been committed. Delivery failures are logged and never reach the caller.
"""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage

from fastapi import BackgroundTasks

from backend.core import config

logger = logging.getLogger(__name__)


def send_email(to_address: str, subject: str, body: str) -> None:
    if not config.NOTIFICATIONS_ENABLED:
        logger.info('Notifications disabled; skipping "%s" to %s', subject, to_address)
        return

    message = EmailMessage()
    message['From'] = config.EMAIL_FROM
    message['To'] = to_address
    message['Subject'] = subject
    message.set_content(body)

    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=10) as smtp:
        if config.SMTP_USE_TLS:
            smtp.starttls()
        if config.SMTP_USER:
            smtp.login(config.SMTP_USER, config.SMTP_PASSWORD)
        smtp.send_message(message)


def deliver_safely(to_address: str, subject: str, body: str) -> None:
    try:
        send_email(to_address, subject, body)
    except Exception:
        logger.exception('Failed to send "%s" notification to %s', subject, to_address)


def notify_session_created(
    background_tasks: BackgroundTasks,
    student_email: str,
    session_title: str,
    teacher_name: str,
    scheduled_date: datetime,
) -> None:
    body = (
        'A new learning session has been created for you.\n\n'
        f'{session_title}\n'
        f'Teacher: {teacher_name}\n'
        f'Scheduled: {scheduled_date:%Y-%m-%d %H:%M}\n\n'
        'Please confirm the session to proceed.'
    )
    background_tasks.add_task(deliver_safely, student_email, 'New Learning Session Created', body)


def notify_session_confirmed(
    background_tasks: BackgroundTasks,
    teacher_email: str,
    session_title: str,
    student_name: str,
    scheduled_date: datetime,
) -> None:
    body = (
        'Your learning session has been confirmed.\n\n'
        f'{session_title}\n'
        f'Student: {student_name}\n'
        f'Scheduled: {scheduled_date:%Y-%m-%d %H:%M}'
    )
    background_tasks.add_task(deliver_safely, teacher_email, 'Session Confirmed', body)

"""Fire-and-forget email notifications.

Services hand events to the ``NotificationDispatcher``, which queues them in a
bounded queue drained by a daemon worker thread. Callers never wait on
delivery; a full queue drops the job with a warning and delivery errors are
logged per recipient.
"""

from __future__ import annotations

import logging
import queue
import smtplib
import threading
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Any, Protocol

from threadline.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

EVENT_OWNER_CONFIRM = "owner-confirm"
EVENT_COMMENT_NEW = "comment-new"
EVENT_COMMENT_REPLY = "comment-reply"

_STOP = object()


@dataclass(frozen=True)
class Recipient:
    """Addressee of a notification."""

    email: str
    name: str


@dataclass(frozen=True)
class NotificationEvent:
    """A notification to deliver to one or more recipients."""

    kind: str
    subject: str
    data: dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    """Delivery channel; raises on failure."""

    def notify(self, event: NotificationEvent, recipient: Recipient) -> None:
        ...


class LoggingNotifier:
    """Notifier that only logs, used when no mail server is configured."""

    def notify(self, event: NotificationEvent, recipient: Recipient) -> None:
        logger.info("notification %s for %s: %s", event.kind, recipient.email, event.subject)


class SmtpNotifier:
    """Deliver notifications as plain-text email over SMTP."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _render_body(self, event: NotificationEvent, recipient: Recipient) -> str:
        lines = [f"Hi {recipient.name},", ""]
        if event.kind == EVENT_OWNER_CONFIRM:
            lines.append("Please confirm your email address by opening the link below:")
            lines.append(event.data["confirm_url"])
        else:
            lines.append(f"New activity on {event.data.get('domain')}{event.data.get('path')}:")
            lines.append("")
            lines.append(event.data.get("markdown", ""))
        return "\n".join(lines)

    def notify(self, event: NotificationEvent, recipient: Recipient) -> None:
        message = EmailMessage()
        message["Subject"] = event.subject
        message["From"] = self.settings.smtp_from_address
        message["To"] = recipient.email
        message.set_content(self._render_body(event, recipient))

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_username and self.settings.smtp_password:
                smtp.login(self.settings.smtp_username, self.settings.smtp_password)
            smtp.send_message(message)


class NotificationDispatcher:
    """Bounded queue of notification jobs drained by a background thread."""

    def __init__(self, notifier: Notifier, *, maxsize: int = 100) -> None:
        """Initialize the dispatcher.

        Args:
            notifier: Channel used to deliver each (event, recipient) pair.
            maxsize: Maximum number of queued jobs before new ones are dropped.
        """
        self.notifier = notifier
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, event: NotificationEvent, recipients: list[Recipient]) -> bool:
        """Queue ``event`` for delivery; return False if it was dropped."""
        if not recipients:
            return True
        try:
            self._queue.put_nowait((event, list(recipients)))
        except queue.Full:
            logger.warning(
                "notification queue full; dropping %s for %d recipient(s)",
                event.kind,
                len(recipients),
            )
            return False
        return True

    def _deliver(self, event: NotificationEvent, recipients: list[Recipient]) -> None:
        for recipient in recipients:
            try:
                self.notifier.notify(event, recipient)
            except Exception:
                logger.warning(
                    "failed to deliver %s notification to %s",
                    event.kind,
                    recipient.email,
                    exc_info=True,
                )

    def process_pending(self) -> int:
        """Deliver every queued job on the calling thread.

        Returns the number of jobs processed.
        """
        processed = 0
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return processed
            try:
                if job is not _STOP:
                    self._deliver(*job)
                    processed += 1
            finally:
                self._queue.task_done()

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                self._deliver(*job)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        """Start the background delivery thread."""
        with self._lock:
            if self.running:
                return
            self._thread = threading.Thread(
                target=self._run,
                name="threadline-notifications",
                daemon=True,
            )
            self._thread.start()
        logger.info("notification dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background thread after pending jobs are delivered."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put(_STOP)
            thread.join(timeout)
            self._thread = None
        logger.info("notification dispatcher stopped")


def build_notifier(settings: Settings | None = None) -> Notifier:
    """Return the SMTP notifier when mail is configured, else the logging one."""
    settings = settings or get_settings()
    if settings.smtp_configured:
        return SmtpNotifier(settings)
    return LoggingNotifier()


_dispatcher: NotificationDispatcher | None = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the process-wide notification dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        settings = get_settings()
        _dispatcher = NotificationDispatcher(
            build_notifier(settings),
            maxsize=settings.notification_queue_size,
        )
    return _dispatcher

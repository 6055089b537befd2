"""Delivery of packaged digests."""

from __future__ import annotations

import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Literal

from loguru import logger

from saga.config.email import EmailConfig
from saga.packaging.models import Artifact


class DeliveryError(RuntimeError):
    """Raised when an artifact could not be handed to its recipient."""


class Deliverer(ABC):
    """Abstract delivery channel."""

    @abstractmethod
    def deliver(self, artifact: Artifact, recipient: str) -> None:
        """Send ``artifact`` to ``recipient``; raise :class:`DeliveryError` on failure."""


class SmtpDeliverer(Deliverer):
    """Mail the artifact as an attachment through an SMTP relay."""

    def __init__(
        self,
        *,
        host: str,
        sender: str,
        username: str,
        password: str,
        port: int = 465,
        security: Literal["ssl", "starttls", "none"] = "ssl",
        timeout: float = 60.0,
    ) -> None:
        self.host = host
        self.port = port
        self.security = security
        self.sender = sender
        self.username = username
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: EmailConfig) -> "SmtpDeliverer":
        return cls(
            host=config.relay_host,
            port=config.port,
            security=config.security,
            sender=config.from_address,
            username=config.username,
            password=config.password_secret,
            timeout=config.timeout,
        )

    def build_message(self, artifact: Artifact, recipient: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = artifact.filename
        message["From"] = self.sender
        message["To"] = recipient
        message.set_content(f"{artifact.entry_count} entries attached as {artifact.filename}.\n")
        maintype, _, subtype = artifact.media_type.partition("/")
        message.add_attachment(
            artifact.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=artifact.filename,
        )
        return message

    def deliver(self, artifact: Artifact, recipient: str) -> None:
        logger.info("Sending {} to {} via {}:{}", artifact.filename, recipient, self.host, self.port)
        message = self.build_message(artifact, recipient)
        try:
            with self._connect() as server:
                if self.security == "starttls":
                    server.starttls(context=ssl.create_default_context())
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"Could not send {artifact.filename} to {recipient}: {exc}") from exc
        logger.info("Email sent successfully to {}", recipient)

    def _connect(self) -> smtplib.SMTP:
        if self.security == "ssl":
            return smtplib.SMTP_SSL(
                self.host,
                self.port,
                timeout=self.timeout,
                context=ssl.create_default_context(),
            )
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)


__all__ = ["Deliverer", "DeliveryError", "SmtpDeliverer"]

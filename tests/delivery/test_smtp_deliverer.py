from __future__ import annotations

import smtplib

import pytest

from saga.config import EmailConfig
from saga.delivery import DeliveryError, SmtpDeliverer
from saga.packaging import Artifact


class _RecordingSMTP:
    instances: list["_RecordingSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.context = context
        self.started_tls = False
        self.logins: list[tuple[str, str]] = []
        self.sent = []
        _RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, username, password):
        self.logins.append((username, password))

    def send_message(self, message):
        if _RecordingSMTP.fail_with is not None:
            raise _RecordingSMTP.fail_with
        self.sent.append(message)


@pytest.fixture(autouse=True)
def _reset_recorder():
    _RecordingSMTP.instances = []
    _RecordingSMTP.fail_with = None
    yield


def _artifact() -> Artifact:
    return Artifact(filename="saga_output_20250101_120000.epub", content=b"PK-epub", entry_count=2)


def _deliverer(security="ssl") -> SmtpDeliverer:
    return SmtpDeliverer(
        host="smtp.example.com",
        port=465,
        security=security,
        sender="saga@example.com",
        username="saga",
        password="secret",
    )


def test_ssl_delivery_attaches_epub(monkeypatch) -> None:
    monkeypatch.setattr(smtplib, "SMTP_SSL", _RecordingSMTP)

    _deliverer().deliver(_artifact(), "reader@example.com")

    (server,) = _RecordingSMTP.instances
    assert (server.host, server.port) == ("smtp.example.com", 465)
    assert server.logins == [("saga", "secret")]
    message = server.sent[0]
    assert message["To"] == "reader@example.com"
    assert message["From"] == "saga@example.com"
    (attachment,) = list(message.iter_attachments())
    assert attachment.get_content_type() == "application/epub+zip"
    assert attachment.get_filename() == "saga_output_20250101_120000.epub"
    assert attachment.get_content() == b"PK-epub"


def test_starttls_delivery_upgrades_connection(monkeypatch) -> None:
    monkeypatch.setattr(smtplib, "SMTP", _RecordingSMTP)

    _deliverer(security="starttls").deliver(_artifact(), "reader@example.com")

    (server,) = _RecordingSMTP.instances
    assert server.started_tls is True


def test_smtp_failure_raises_delivery_error(monkeypatch) -> None:
    monkeypatch.setattr(smtplib, "SMTP_SSL", _RecordingSMTP)
    _RecordingSMTP.fail_with = smtplib.SMTPRecipientsRefused({"reader@example.com": (550, b"no")})

    with pytest.raises(DeliveryError, match="reader@example.com"):
        _deliverer().deliver(_artifact(), "reader@example.com")


def test_connection_failure_raises_delivery_error(monkeypatch) -> None:
    def _refuse(*args, **kwargs):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(smtplib, "SMTP_SSL", _refuse)

    with pytest.raises(DeliveryError, match="refused"):
        _deliverer().deliver(_artifact(), "reader@example.com")


def test_from_config_resolves_password(monkeypatch) -> None:
    monkeypatch.setenv("SAGA_TEST_SMTP_PASSWORD", "from-env")
    config = EmailConfig.model_validate(
        {
            "to": "reader@example.com",
            "from": "saga@example.com",
            "relay": "smtp.example.com",
            "username": "saga",
            "password": "env:SAGA_TEST_SMTP_PASSWORD",
        }
    )

    deliverer = SmtpDeliverer.from_config(config)

    assert deliverer.password == "from-env"
    assert deliverer.host == "smtp.example.com"
    assert deliverer.sender == "saga@example.com"
    assert deliverer.security == "ssl"

from __future__ import annotations

from pathlib import Path

import pytest

from saga.config import AppConfig, BaseConfig, ConfigError, EmailConfig, load_config, resolve_env_reference

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "example.toml"

MINIMAL = """
schedule = "0 7 * * *"

[email]
to = "reader@kindle.com"
from = "saga@example.com"
relay = "smtp.example.com"
username = "saga"
password = "hunter2"

[[feeds]]
url = "https://example.com/feed.xml"
random = true
"""


class ExampleConfig(BaseConfig):
    data_root: Path
    feature_enabled: bool


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(text.strip(), encoding="utf-8")
    return path


def test_load_config_success(tmp_path: Path) -> None:
    sample = _write(tmp_path, 'data_root = "./cache"\nfeature_enabled = true')

    cfg = load_config(ExampleConfig, sample)

    assert cfg.data_root == Path("./cache")
    assert cfg.feature_enabled is True


def test_example_file_loads() -> None:
    cfg = load_config(AppConfig, EXAMPLE_CONFIG)

    assert cfg.schedule == "0 0 7 * * *"
    assert cfg.scheduler.timezone == "Europe/London"
    assert cfg.email.from_address == "saga@example.com"
    assert cfg.email.security == "ssl"
    assert [feed.random_fallback for feed in cfg.feeds] == [False, True]
    assert cfg.log_dir == Path("logs")


def test_aliases_and_defaults(tmp_path: Path) -> None:
    cfg = load_config(AppConfig, _write(tmp_path, MINIMAL))

    assert cfg.email.relay_host == "smtp.example.com"
    assert cfg.email.port == 465
    assert cfg.feeds[0].address == "https://example.com/feed.xml"
    assert cfg.feeds[0].random_fallback is True
    assert cfg.database_path == Path("database.db3")
    assert cfg.output_dir == Path(".")
    assert cfg.log_dir is None
    assert cfg.scheduler.max_schedule_failures is None
    assert cfg.fetch.max_retries == 3


def test_missing_file_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(AppConfig, tmp_path / "missing.toml")


def test_invalid_toml_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(AppConfig, _write(tmp_path, "schedule = "))


@pytest.mark.parametrize(
    ("text", "location"),
    [
        ("unknown_option = 1\n" + MINIMAL, "unknown_option"),
        ('logging_level = "VERBOSE"\n' + MINIMAL, "logging_level"),
        (MINIMAL.replace('"0 7 * * *"', '"every morning"'), "<root>"),
        (MINIMAL.replace('to = "reader@kindle.com"\n', ""), "email.to"),
        (MINIMAL + '\n[[feeds]]\naddress = "https://example.com/feed.xml"\n', "<root>"),
        (MINIMAL + '\n[scheduler]\ntimezone = "Nowhere/Special"\n', "<root>"),
    ],
)
def test_validation_errors_are_reported(tmp_path: Path, text: str, location: str) -> None:
    with pytest.raises(ConfigError) as exc_info:
        load_config(AppConfig, _write(tmp_path, text))

    error = exc_info.value
    assert "Configuration validation failed" in str(error)
    assert location in [detail["loc"] for detail in error.details]


def test_feeds_are_required(tmp_path: Path) -> None:
    text = "feeds = []\n" + MINIMAL.split("[[feeds]]")[0]
    with pytest.raises(ConfigError, match="feeds"):
        load_config(AppConfig, _write(tmp_path, text))


def test_resolve_paths_anchors_relative_paths(tmp_path: Path) -> None:
    cfg = load_config(AppConfig, _write(tmp_path, 'log_dir = "logs"\n' + MINIMAL))
    absolute = tmp_path / "elsewhere" / "state.db3"
    cfg = cfg.model_copy(update={"database_path": absolute})

    resolved = cfg.resolve_paths(tmp_path)

    assert resolved.database_path == absolute
    assert resolved.output_dir == tmp_path.resolve()
    assert resolved.log_dir == (tmp_path / "logs").resolve()


def test_env_reference_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAGA_TEST_SECRET", "s3cret")
    monkeypatch.delenv("SAGA_TEST_MISSING", raising=False)

    assert resolve_env_reference("plain") == "plain"
    assert resolve_env_reference("env:SAGA_TEST_SECRET") == "s3cret"
    with pytest.raises(ConfigError):
        resolve_env_reference("env:SAGA_TEST_MISSING")
    with pytest.raises(ConfigError):
        resolve_env_reference("env:")


def test_email_password_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAGA_TEST_SMTP", "from-env")
    email = EmailConfig(
        to="reader@kindle.com",
        from_address="saga@example.com",
        relay_host="smtp.example.com",
        username="saga",
        password="env:SAGA_TEST_SMTP",
    )

    assert email.password_secret == "from-env"

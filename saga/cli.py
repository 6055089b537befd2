"""Command line interface for saga."""

from __future__ import annotations

import os
from pathlib import Path

import typer
from loguru import logger

from .config import AppConfig, ConfigError, load_config
from .pipeline import RunOrchestrator, RunReport
from .scheduler import RecurrenceSchedule, ScheduleComputeError, SchedulerService
from .state import StateStore, StoreError

CONFIG_ENV_VAR = "SAGA_CONFIG"

app = typer.Typer(help="Mail one new entry per feed as an EPUB digest", add_completion=False)


def _config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR, "config.toml")).resolve()


def _exit(code: int) -> None:
    raise typer.Exit(code)


def _load_app_config(path: Path) -> AppConfig:
    config = load_config(AppConfig, path).resolve_paths(path.parent)
    logger.info("Using config at path {}", path)
    logger.info("Logging level: {}", config.logging_level)
    return config


def _build_orchestrator(config: AppConfig, store: StateStore) -> RunOrchestrator:
    return RunOrchestrator.from_config(config, store)


def _build_scheduler(config: AppConfig, orchestrator: RunOrchestrator) -> SchedulerService:
    schedule = RecurrenceSchedule.parse(config.schedule, timezone=config.scheduler.timezone)
    return SchedulerService(
        schedule,
        orchestrator.run,
        retry_backoff_seconds=config.scheduler.retry_backoff_seconds,
        max_schedule_failures=config.scheduler.max_schedule_failures,
    )


def _log_report(report: RunReport | None) -> None:
    if report is None:
        return
    if report.artifact is None:
        logger.info("Run {} delivered nothing", report.run_id)
        return
    logger.info(
        "Run {} delivered {} with {} entries",
        report.run_id,
        report.artifact.filename,
        report.artifact.entry_count,
    )
    for address in report.failed_feeds:
        logger.warning("Feed {} was skipped this run", address)
    for address in report.commit_failures:
        logger.warning("Feed {} was delivered but not recorded; expect a duplicate", address)


@app.command(help="Run once, or with --daemon keep running on the configured schedule")
def run(
    daemon: bool = typer.Option(
        False,
        "--daemon",
        "-d",
        help="Run in daemon mode on the configured cron schedule",
    ),
) -> None:
    config_path = _config_path()
    try:
        config = _load_app_config(config_path)
    except ConfigError as exc:
        logger.error("Configuration error: {}", exc)
        _exit(1)

    try:
        store = StateStore(config.database_path)
    except StoreError as exc:
        logger.error("{}", exc)
        _exit(1)

    with store:
        try:
            orchestrator = _build_orchestrator(config, store)
            scheduler = _build_scheduler(config, orchestrator)
        except (ConfigError, ValueError) as exc:
            logger.error("Configuration error: {}", exc)
            _exit(1)

        if not daemon:
            try:
                report = scheduler.run_once()
            except Exception as exc:
                logger.error("Run failed: {}", exc)
                _exit(1)
            _log_report(report)
            return

        if config.log_dir is not None:
            scheduler.setup_logging_sink(config.log_dir, config.logging_level)
        try:
            scheduler.run_forever()
        except ScheduleComputeError as exc:
            logger.error("Giving up on schedule '{}': {}", config.schedule, exc)
            _exit(1)
        except KeyboardInterrupt:
            logger.info("Interrupted; stopping daemon.")
        finally:
            scheduler.shutdown()


def main(argv: list[str] | None = None) -> int:
    """Entry point compatible with setuptools console scripts."""

    try:
        result = app(args=argv, standalone_mode=False)
    except typer.Exit as exc:  # pragma: no cover - Typer translates exit codes
        return exc.exit_code
    if isinstance(result, int):
        return result
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

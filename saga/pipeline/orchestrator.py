"""One digest run: fetch every feed, select, package, deliver, commit."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal, Sequence
from uuid import uuid4

from loguru import logger

from saga.config import AppConfig, FeedConfig
from saga.delivery import Deliverer, SmtpDeliverer
from saga.feeds import Candidate, FeedClient, FeedFetcher, FetchError
from saga.packaging import Artifact, EpubPackager, Packager, PackagingError
from saga.selection import select_entry
from saga.state import StateStore, StoreError

FeedStatus = Literal["selected", "empty", "fetch_failed", "store_failed"]


@dataclass(slots=True)
class FeedOutcome:
    """What happened to a single feed during a run."""

    address: str
    status: FeedStatus
    candidate: Candidate | None = None
    error: str | None = None


@dataclass(slots=True)
class RunReport:
    """Summary of a run, returned to the scheduler and CLI."""

    run_id: str
    cutoff: datetime
    outcomes: list[FeedOutcome] = field(default_factory=list)
    artifact: Artifact | None = None
    artifact_path: Path | None = None
    committed: list[str] = field(default_factory=list)
    commit_failures: dict[str, str] = field(default_factory=dict)

    @property
    def selections(self) -> list[FeedOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "selected"]

    @property
    def failed_feeds(self) -> list[str]:
        return [
            outcome.address
            for outcome in self.outcomes
            if outcome.status in ("fetch_failed", "store_failed")
        ]

    @property
    def delivered(self) -> bool:
        return self.artifact is not None


class RunOrchestrator:
    """Drive a single run over the configured feeds.

    State is only written after the deliverer reports success, so a failed
    packaging or delivery step leaves every selected entry eligible for the
    next run. If a commit fails after delivery the entry will be delivered
    again next run; such feeds are logged and listed in the report.
    """

    def __init__(
        self,
        feeds: Sequence[FeedConfig],
        *,
        store: StateStore,
        fetcher: FeedFetcher,
        packager: Packager,
        deliverer: Deliverer,
        recipient: str,
        rng: random.Random | None = None,
        output_dir: Path | None = None,
    ) -> None:
        self.feeds = list(feeds)
        self.store = store
        self.fetcher = fetcher
        self.packager = packager
        self.deliverer = deliverer
        self.recipient = recipient
        self.rng = rng or random.Random()
        self.output_dir = output_dir

    @classmethod
    def from_config(cls, config: AppConfig, store: StateStore) -> "RunOrchestrator":
        fetch_cfg = config.fetch
        return cls(
            config.feeds,
            store=store,
            fetcher=FeedClient(
                timeout=fetch_cfg.timeout,
                max_retries=fetch_cfg.max_retries,
                retry_delay=fetch_cfg.retry_delay,
                user_agent=fetch_cfg.user_agent,
            ),
            packager=EpubPackager(),
            deliverer=SmtpDeliverer.from_config(config.email),
            recipient=config.email.to,
            rng=random.Random(config.random_seed),
            output_dir=config.output_dir,
        )

    def run(self, cutoff: datetime) -> RunReport:
        report = RunReport(run_id=uuid4().hex, cutoff=cutoff)
        run_logger = logger.bind(run_id=report.run_id)
        run_logger.info("Run started with cutoff {} over {} feeds", cutoff.isoformat(), len(self.feeds))

        for feed in self.feeds:
            outcome = self._process_feed(feed, cutoff)
            report.outcomes.append(outcome)

        batch = [outcome for outcome in report.selections if outcome.candidate is not None]
        if not batch:
            run_logger.info("No new entries in any feed; nothing to deliver")
            return report

        artifact = self.packager.package([outcome.candidate for outcome in batch], cutoff)
        if self.output_dir is not None:
            try:
                report.artifact_path = artifact.write_to(self.output_dir)
            except OSError as exc:
                raise PackagingError(f"Failed to save {artifact.filename} to {self.output_dir}: {exc}") from exc
            run_logger.info("EPUB file saved as {}", report.artifact_path)

        self.deliverer.deliver(artifact, self.recipient)
        report.artifact = artifact

        for outcome in batch:
            self._commit(outcome, report)

        run_logger.info(
            "Run finished: delivered={}, committed={}, commit_failures={}, failed_feeds={}",
            len(batch),
            len(report.committed),
            len(report.commit_failures),
            len(report.failed_feeds),
        )
        return report

    def _process_feed(self, feed: FeedConfig, cutoff: datetime) -> FeedOutcome:
        try:
            candidates = self.fetcher.fetch(feed.address)
        except FetchError as exc:
            logger.error("Skipping feed {}: {}", feed.address, exc)
            return FeedOutcome(feed.address, "fetch_failed", error=str(exc))

        try:
            last_processed = self.store.last_processed(feed.address)
            processed = self.store.processed_ids(candidate.id for candidate in candidates)
        except StoreError as exc:
            logger.error("Skipping feed {}: {}", feed.address, exc)
            return FeedOutcome(feed.address, "store_failed", error=str(exc))

        candidate = select_entry(
            candidates,
            cutoff=cutoff,
            processed_ids=processed,
            last_processed=last_processed,
            random_fallback=feed.random_fallback,
            rng=self.rng,
        )
        if candidate is None:
            logger.warning("No eligible entry in feed {}", feed.address)
            return FeedOutcome(feed.address, "empty")

        logger.info("Found entry '{}' in feed {}", candidate.title, feed.address)
        return FeedOutcome(feed.address, "selected", candidate=candidate)

    def _commit(self, outcome: FeedOutcome, report: RunReport) -> None:
        candidate = outcome.candidate
        assert candidate is not None  # only selected outcomes are committed
        try:
            self.store.commit(outcome.address, candidate.id, candidate.published)
        except StoreError as exc:
            logger.error(
                "Commit failed for feed {}; entry '{}' may be delivered again next run: {}",
                outcome.address,
                candidate.id,
                exc,
            )
            report.commit_failures[outcome.address] = str(exc)
            return
        report.committed.append(outcome.address)


__all__ = ["FeedOutcome", "RunOrchestrator", "RunReport"]

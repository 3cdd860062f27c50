"""Monitoring engine -- one scheduled pass over prices and alerts.

Each cycle runs three steps in order:
  1. SAMPLE: fetch every tracked chain and append a PriceSample
  2. DETECT: compare each watched chain's latest sample with the latest one
     older than the look-back window; notify operations above threshold
  3. ALERTS: fetch live prices for pending alerts; notify and consume the
     ones whose target has been reached

Steps and the per-chain / per-alert work inside them are fault-isolated: a
failure is logged with its chain or alert id and never aborts sibling work.
Sampling precedes detection so detection sees the freshest sample, but
detection does not depend on it.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from decimal import Decimal

import structlog

from pricewatch.config import MonitorSettings
from pricewatch.data.alert_store import AlertStore
from pricewatch.data.price_store import PriceStore
from pricewatch.exceptions import FeedUnavailable
from pricewatch.feeds.client import PriceFeed
from pricewatch.logging import get_logger
from pricewatch.models import Alert, CycleReport, PriceSample
from pricewatch.notify.messages import increase_message, target_reached_message
from pricewatch.notify.notifier import Notifier
from pricewatch.signals.increase import detect_increase, is_significant_increase

logger = get_logger(__name__)


class MonitoringEngine:
    """Sampling, increase detection and alert evaluation over injected collaborators.

    The engine holds no schedule of its own; CycleScheduler decides when
    ``run_cycle`` is called and guarantees cycles never overlap.

    Args:
        feed: Live price source.
        price_store: Append-only sample series.
        alert_store: Pending alerts.
        notifier: Email transport.
        settings: Chain lists, threshold, windows, timeouts and delivery policy.
        clock: Returns the current Unix time in seconds (injectable for tests).
    """

    def __init__(
        self,
        feed: PriceFeed,
        price_store: PriceStore,
        alert_store: AlertStore,
        notifier: Notifier,
        settings: MonitorSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feed = feed
        self._price_store = price_store
        self._alert_store = alert_store
        self._notifier = notifier
        self._settings = settings
        self._clock = clock
        self._alert_lock = asyncio.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def run_cycle(self) -> CycleReport:
        """Run sample, detect and alert steps once, in that order."""
        report = CycleReport(cycle_id=uuid.uuid4().hex[:8], started_at=self._clock())
        steps: list[tuple[str, Callable[[CycleReport], Awaitable[int]]]] = [
            ("sample", self.sample_prices),
            ("detect", self.check_increases),
            ("alerts", self.check_alerts),
        ]

        with structlog.contextvars.bound_contextvars(cycle_id=report.cycle_id):
            logger.debug("cycle_started")
            for name, step in steps:
                try:
                    await step(report)
                except Exception as e:
                    report.errors.append(f"{name}: {e}")
                    logger.error("cycle_step_failed", step=name, error=str(e), exc_info=True)

            report.finished_at = self._clock()
            logger.info(
                "cycle_completed",
                samples_written=report.samples_written,
                increases_notified=report.increases_notified,
                alerts_triggered=report.alerts_triggered,
                errors=len(report.errors),
                duration_s=round(report.duration_seconds or 0.0, 3),
            )
        return report

    # ──────────────────────────────────────────────
    # 1. SAMPLE
    # ──────────────────────────────────────────────

    async def sample_prices(self, report: CycleReport | None = None) -> int:
        """Fetch and store one sample per tracked chain. Returns samples written.

        Chains are fetched concurrently; each chain writes at most one sample
        per cycle, so per-chain write order follows cycle order.
        """
        chains = self._settings.tracked_chains
        results = await asyncio.gather(*(self._sample_chain(c, report) for c in chains))
        written = sum(1 for ok in results if ok)
        if report is not None:
            report.samples_written += written
        return written

    async def _sample_chain(self, chain: str, report: CycleReport | None) -> bool:
        try:
            price = await self.fetch_price(chain)
            sample = PriceSample(chain=chain, price=price, timestamp_ms=self._now_ms())
            await self._price_store.save(sample)
        except Exception as e:
            logger.error("price_sample_failed", chain=chain, error=str(e))
            if report is not None:
                report.errors.append(f"sample {chain}: {e}")
            return False
        logger.info("price_sampled", chain=chain, price=str(price))
        return True

    async def fetch_price(self, chain: str) -> Decimal:
        """Live price for a chain, bounded by the configured call timeout."""
        try:
            return await asyncio.wait_for(
                self._feed.fetch(chain), timeout=self._settings.call_timeout_seconds
            )
        except TimeoutError as e:
            raise FeedUnavailable(chain, "timed out") from e

    # ──────────────────────────────────────────────
    # 2. DETECT
    # ──────────────────────────────────────────────

    async def check_increases(self, report: CycleReport | None = None) -> int:
        """Notify operations for every watched chain above the increase threshold.

        A sustained increase is re-notified on every qualifying cycle.
        Returns the number of notifications delivered.
        """
        now_ms = self._now_ms()
        window_ms = self._settings.increase_window_seconds * 1000
        notified = 0

        for chain in self._settings.watched_chains:
            try:
                pct = await self._increase_for(chain, now_ms, window_ms)
                if not is_significant_increase(pct, self._settings.increase_threshold_pct):
                    continue
                assert pct is not None
                logger.info("increase_detected", chain=chain, increase_pct=str(pct))
                subject, body = increase_message(
                    chain, pct, window_hours=max(1, self._settings.increase_window_seconds // 3600)
                )
                if await self._notify(self._settings.ops_alert_recipient, subject, body):
                    notified += 1
            except Exception as e:
                logger.error("increase_check_failed", chain=chain, error=str(e))
                if report is not None:
                    report.errors.append(f"detect {chain}: {e}")

        if report is not None:
            report.increases_notified += notified
        return notified

    async def _increase_for(self, chain: str, now_ms: int, window_ms: int) -> Decimal | None:
        current = await self._price_store.latest(chain, at_or_before_ms=now_ms)
        past = await self._price_store.latest_before(chain, now_ms - window_ms)
        history = [s for s in (past, current) if s is not None]
        return detect_increase(history, now_ms, window_ms, strict_baseline=True)

    # ──────────────────────────────────────────────
    # 3. ALERTS
    # ──────────────────────────────────────────────

    async def check_alerts(self, report: CycleReport | None = None) -> int:
        """Evaluate all pending alerts sequentially. Returns alerts triggered.

        Serialized by an internal lock: a concurrent caller waits, then
        re-reads the store and no longer sees alerts consumed meanwhile.
        """
        triggered = 0
        async with self._alert_lock:
            alerts = await self._alert_store.list_all()
            logger.debug("alerts_loaded", count=len(alerts))
            for alert in alerts:
                try:
                    if await self._evaluate_alert(alert):
                        triggered += 1
                except Exception as e:
                    logger.error(
                        "alert_evaluation_failed",
                        alert_id=alert.id,
                        chain=alert.chain,
                        error=str(e),
                    )
                    if report is not None:
                        report.errors.append(f"alert {alert.id}: {e}")

        if report is not None:
            report.alerts_triggered += triggered
        return triggered

    async def _evaluate_alert(self, alert: Alert) -> bool:
        """Notify-then-delete for a single alert. Returns True if its target was reached.

        The send is always attempted before the delete. With
        ``delete_alert_on_failed_send`` the alert is consumed regardless of
        the send outcome (a failed send is lost); otherwise it is kept and
        re-evaluated next cycle (a later send may duplicate).
        """
        price = await self.fetch_price(alert.chain)
        if not alert.is_satisfied_by(price):
            return False

        logger.info(
            "alert_triggered",
            alert_id=alert.id,
            chain=alert.chain,
            price=str(price),
            target_price=str(alert.target_price),
        )
        subject, body = target_reached_message(alert.chain, price, alert.target_price)
        delivered = await self._notify(alert.email, subject, body)

        if delivered or self._settings.delete_alert_on_failed_send:
            deleted = await self._alert_store.delete_by_id(alert.id)
            if not deleted:
                logger.warning("alert_already_deleted", alert_id=alert.id)
        else:
            logger.warning("alert_retained_after_failed_send", alert_id=alert.id)
        return True

    async def _notify(self, to: str, subject: str, body: str) -> bool:
        """Send without propagating failures. Returns True on confirmed send."""
        try:
            await asyncio.wait_for(
                self._notifier.send(to, subject, body),
                timeout=self._settings.call_timeout_seconds,
            )
        except Exception as e:
            # NotificationFailure, TimeoutError or a transport bug; never retried here
            logger.error("notification_failed", to=to, subject=subject, error=str(e))
            return False
        return True

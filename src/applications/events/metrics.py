"""Prometheus metrics for board observability.

Metrics Defined:
- applications_transitions_committed_total: Committed stage changes by target
- applications_mutations_rolled_back_total: Rolled-back mutations by kind
- applications_undo_consumed_total: Rejections reverted from the undo buffer
- applications_promotions_total: Accepted applications handed to tracking
- applications_removed_total: Applications deleted

MetricsEventEmitter keeps these in step with the BoardEvent stream.
"""

import logging
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    generate_latest,
)

from src.applications.events.emitter import EventEmitter
from src.applications.events.models import BoardEvent, BoardEventType


logger = logging.getLogger(__name__)


class BoardMetrics:
    """Container for the board's Prometheus metrics.

    Pass a custom registry in tests; the default REGISTRY rejects a second
    registration of the same metric names.

    Example:
        >>> metrics = BoardMetrics(CollectorRegistry())
        >>> metrics.transitions_committed_total.labels(to_stage="Interview").inc()
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.transitions_committed_total = Counter(
            "applications_transitions_committed_total",
            "Stage transitions confirmed by the remote store",
            labelnames=["to_stage"],
            registry=self.registry,
        )

        self.mutations_rolled_back_total = Counter(
            "applications_mutations_rolled_back_total",
            "Optimistic mutations rolled back after a remote failure",
            labelnames=["mutation"],
            registry=self.registry,
        )

        self.undo_consumed_total = Counter(
            "applications_undo_consumed_total",
            "Rejections reverted through the undo buffer",
            registry=self.registry,
        )

        self.promotions_total = Counter(
            "applications_promotions_total",
            "Accepted applications handed to research tracking",
            registry=self.registry,
        )

        self.removed_total = Counter(
            "applications_removed_total",
            "Applications removed from the pipeline",
            registry=self.registry,
        )


_default_metrics: Optional[BoardMetrics] = None


def get_metrics(registry: Optional[CollectorRegistry] = None) -> BoardMetrics:
    """Get the global metrics instance, or a new one for a custom registry."""
    global _default_metrics

    if registry is not None:
        return BoardMetrics(registry=registry)

    if _default_metrics is None:
        _default_metrics = BoardMetrics()

    return _default_metrics


def generate_metrics_output(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Render metrics in Prometheus text format."""
    return generate_latest(registry or REGISTRY)


class MetricsEventEmitter(EventEmitter):
    """Event emitter that updates Prometheus counters.

    Attributes:
        metrics: The BoardMetrics instance to update.
    """

    def __init__(
        self,
        metrics: Optional[BoardMetrics] = None,
        registry: Optional[CollectorRegistry] = None,
    ):
        if metrics is not None:
            self._metrics = metrics
        else:
            self._metrics = get_metrics(registry)

    @property
    def metrics(self) -> BoardMetrics:
        return self._metrics

    async def emit(self, event: BoardEvent) -> None:
        try:
            if event.event_type == BoardEventType.TRANSITION_COMMITTED:
                to_stage = str(event.details.get("to_stage", "unknown"))
                self._metrics.transitions_committed_total.labels(
                    to_stage=to_stage,
                ).inc()
            elif event.event_type == BoardEventType.TRANSITION_ROLLED_BACK:
                mutation = str(event.details.get("mutation", "unknown"))
                self._metrics.mutations_rolled_back_total.labels(
                    mutation=mutation,
                ).inc()
            elif event.event_type == BoardEventType.UNDO_CONSUMED:
                self._metrics.undo_consumed_total.inc()
            elif event.event_type == BoardEventType.APPLICATION_PROMOTED:
                self._metrics.promotions_total.inc()
            elif event.event_type == BoardEventType.APPLICATION_REMOVED:
                self._metrics.removed_total.inc()
        except Exception as e:
            logger.error(
                "Failed to update metrics for event %s: %s",
                event.event_type.value,
                str(e),
                extra={
                    "event_type": event.event_type.value,
                    "application_id": event.application_id,
                },
            )

"""Event log client and board observability.

- EventLog: append/list access to the application's audit history
- BoardEvent / BoardEventType: lifecycle events for logs and metrics
- EventEmitter and implementations: route BoardEvents to sinks
- BoardMetrics / MetricsEventEmitter: Prometheus counters
"""

from src.applications.events.emitter import (
    CompositeEventEmitter,
    EventEmitter,
    EventSinkType,
    LoggingEventEmitter,
    NullEventEmitter,
    create_event_emitter,
    emit_safely,
)
from src.applications.events.log import EventLog
from src.applications.events.metrics import (
    BoardMetrics,
    MetricsEventEmitter,
    generate_metrics_output,
    get_metrics,
)
from src.applications.events.models import BoardEvent, BoardEventType

__all__ = [
    # Audit log
    "EventLog",
    # Board events
    "BoardEvent",
    "BoardEventType",
    # Emitters
    "EventEmitter",
    "LoggingEventEmitter",
    "CompositeEventEmitter",
    "MetricsEventEmitter",
    "NullEventEmitter",
    "emit_safely",
    # Metrics
    "BoardMetrics",
    "get_metrics",
    "generate_metrics_output",
    # Factory
    "EventSinkType",
    "create_event_emitter",
]

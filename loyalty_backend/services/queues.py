"""
Queue Service

Operations on the list of queues and on the signal templates inside one queue.

- Queues: add_queue, update_queue, remove_queue
- Signals: add_signal (append), replace_signal (replace-by-id),
  update_signal (partial merge), remove_signal

All signal operations are scoped to one queue. Signal order is insertion
order; replacing or updating a signal keeps its position. Unknown queue or
signal ids raise NotFoundError. Each operation returns a new list of queues.
"""

import logging
from typing import Any, List, Tuple

from loyalty_backend.core.errors import DuplicateIdError, LockedEntryError, NotFoundError
from loyalty_backend.models.enums import SignalCondition, SignalPeriod
from loyalty_backend.models.schemas import Queue, SignalTemplate
from loyalty_backend.services.earning_rules import as_partial
from loyalty_backend.services.identifiers import QUEUE_PREFIX, new_id
from loyalty_backend.services.signal_templates import materialize_template


logger = logging.getLogger(__name__)


DEFAULT_QUEUES: Tuple[Tuple[str, str, str], ...] = (
    (
        "customer_intelligence",
        "Customer Intelligence Queue",
        "Monitors customer behavior, churn risk, and LTV changes",
    ),
    (
        "store_performance",
        "Store Performance Queue",
        "Tracks store comparisons and identifies opportunities",
    ),
    (
        "campaign_intelligence",
        "Campaign Intelligence Queue",
        "Optimizes campaign performance in real-time",
    ),
    (
        "fraud_risk",
        "Fraud & Risk Queue",
        "Detects unusual patterns and potential fraud",
    ),
)


def default_queues() -> List[Queue]:
    """The four built-in queues, enabled and without signals."""
    return [
        Queue(id=queue_id, name=name, description=description, enabled=True, signals=[])
        for queue_id, name, description in DEFAULT_QUEUES
    ]


# =============================================================================
# Lookup
# =============================================================================


def find_queue(queues: List[Queue], queue_id: str) -> Queue:
    """
    Raises:
        NotFoundError: If no queue has this id.
    """
    for queue in queues:
        if queue.id == queue_id:
            return queue
    raise NotFoundError("Queue", queue_id)


def find_signal(queue: Queue, signal_id: str) -> SignalTemplate:
    """
    Raises:
        NotFoundError: If the queue has no signal with this id.
    """
    for signal in queue.signals:
        if signal.id == signal_id:
            return signal
    raise NotFoundError("Signal", signal_id)


def _replace_queue(queues: List[Queue], updated: Queue) -> List[Queue]:
    return [updated if queue.id == updated.id else queue for queue in queues]


def active_signals(queue: Queue) -> List[SignalTemplate]:
    """Signals that may trigger: enabled signals of an enabled queue."""
    if not queue.enabled:
        return []
    return [signal for signal in queue.signals if signal.enabled]


# =============================================================================
# Queue Operations
# =============================================================================


def add_queue(
    queues: List[Queue],
    name: str,
    description: str = "",
    enabled: bool = True,
) -> Tuple[List[Queue], Queue]:
    """Append a new, empty queue. Returns (updated queues, new queue)."""
    queue = Queue(id=new_id(QUEUE_PREFIX), name=name, description=description, enabled=enabled)
    logger.info(f"Queue '{name}' added ({queue.id})")
    return [*queues, queue], queue


def update_queue(queues: List[Queue], queue_id: str, partial: Any) -> List[Queue]:
    """
    Merge name, description or enabled into a queue.

    Raises:
        NotFoundError: Unknown queue id.
        LockedEntryError: Attempt to change the id or the signal list.
    """
    queue = find_queue(queues, queue_id)
    changes = as_partial(partial)

    if changes.pop("id", queue_id) != queue_id:
        raise LockedEntryError("Queue", queue_id, "Queue id cannot be changed")
    if "signals" in changes:
        raise LockedEntryError(
            "Queue",
            queue_id,
            "Queue signals are changed through the signal operations",
        )

    updated = Queue.model_validate({**queue.model_dump(), **changes})
    return _replace_queue(queues, updated)


def remove_queue(queues: List[Queue], queue_id: str) -> List[Queue]:
    """
    Raises:
        NotFoundError: Unknown queue id.
    """
    find_queue(queues, queue_id)
    logger.info(f"Queue {queue_id} removed")
    return [queue for queue in queues if queue.id != queue_id]


# =============================================================================
# Signal Operations
# =============================================================================


def _as_template(template: Any) -> SignalTemplate:
    if isinstance(template, SignalTemplate):
        return template
    return materialize_template(as_partial(template))


def add_signal(queues: List[Queue], queue_id: str, template: Any) -> List[Queue]:
    """
    Append a signal template to a queue.

    Args:
        template: SignalTemplate or mapping of its fields.

    Raises:
        NotFoundError: Unknown queue id.
        DuplicateIdError: The queue already holds a signal with this id.
        IncompleteTemplateError / InvalidRangeError: Invalid template data.
    """
    queue = find_queue(queues, queue_id)
    signal = _as_template(template)
    if any(existing.id == signal.id for existing in queue.signals):
        raise DuplicateIdError("Signal", signal.id)

    logger.info(f"Signal '{signal.name}' added to queue {queue_id} ({signal.id})")
    updated = queue.model_copy(update={"signals": [*queue.signals, signal]})
    return _replace_queue(queues, updated)


def replace_signal(queues: List[Queue], queue_id: str, template: Any) -> List[Queue]:
    """
    Replace the signal with the same id, keeping its position.

    Raises:
        NotFoundError: Unknown queue id, or no signal with the template's id.
    """
    queue = find_queue(queues, queue_id)
    signal = _as_template(template)
    find_signal(queue, signal.id)

    logger.info(f"Signal {signal.id} replaced in queue {queue_id}")
    signals = [signal if existing.id == signal.id else existing for existing in queue.signals]
    return _replace_queue(queues, queue.model_copy(update={"signals": signals}))


def update_signal(queues: List[Queue], queue_id: str, signal_id: str, partial: Any) -> List[Queue]:
    """
    Merge a partial update into one signal template in place.

    Switching the condition away from between drops thresholdMax, and
    switching the period away from custom drops customPeriodDays.

    Raises:
        NotFoundError: Unknown queue or signal id.
        LockedEntryError: Attempt to change the signal id.
        IncompleteTemplateError / InvalidRangeError: Invalid merged template.
    """
    queue = find_queue(queues, queue_id)
    signal = find_signal(queue, signal_id)
    changes = as_partial(partial)

    if changes.pop("id", signal_id) != signal_id:
        raise LockedEntryError("Signal", signal_id, "Signal id cannot be changed")

    merged = {**signal.model_dump(), **changes, "id": signal_id}
    if merged.get("condition") != SignalCondition.BETWEEN:
        merged["thresholdMax"] = None
    if merged.get("period") != SignalPeriod.CUSTOM:
        merged["customPeriodDays"] = None

    return replace_signal(queues, queue_id, materialize_template(merged))


def remove_signal(queues: List[Queue], queue_id: str, signal_id: str) -> List[Queue]:
    """
    Remove a signal template permanently.

    Raises:
        NotFoundError: Unknown queue or signal id.
    """
    queue = find_queue(queues, queue_id)
    find_signal(queue, signal_id)

    logger.info(f"Signal {signal_id} removed from queue {queue_id}")
    signals = [signal for signal in queue.signals if signal.id != signal_id]
    return _replace_queue(queues, queue.model_copy(update={"signals": signals}))

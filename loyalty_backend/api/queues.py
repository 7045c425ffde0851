"""
FastAPI router for alert queues and their signal templates.

Key Endpoints:
- GET /queues - All queues with their signals
- GET /queues/catalog - Metric categories and available actions
- POST /queues - Create a queue
- GET /queues/{queue_id} - One queue
- PATCH /queues/{queue_id} - Rename, describe, enable or disable a queue
- DELETE /queues/{queue_id} - Remove a queue
- POST /queues/{queue_id}/signals - Append a complete signal template
- PATCH /queues/{queue_id}/signals/{signal_id} - Merge into a signal template
- DELETE /queues/{queue_id}/signals/{signal_id} - Remove a signal template

Signal bodies go through the same materialization as the builder's save:
missing fields answer 422 INCOMPLETE_TEMPLATE, bad ranges 422 INVALID_RANGE.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Response

from loyalty_backend.api.errors import translate_errors
from loyalty_backend.core.dependencies import StoreDep
from loyalty_backend.models.schemas import Queue, QueueCreate, SignalTemplate
from loyalty_backend.services.identifiers import SIGNAL_PREFIX, new_id
from loyalty_backend.services.queues import find_queue, find_signal
from loyalty_backend.services.signal_templates import AVAILABLE_ACTIONS, metrics_by_category


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Queues
# =============================================================================


@router.get("", response_model=List[Queue])
async def list_queues(store: StoreDep) -> List[Queue]:
    return store.state.queues


@router.get("/catalog", response_model=Dict[str, Any])
async def get_catalog() -> Dict[str, Any]:
    """Metric picker groups and the selectable actions."""
    return {
        "metrics": {
            category.value: [metric.value for metric in metrics]
            for category, metrics in metrics_by_category().items()
        },
        "actions": list(AVAILABLE_ACTIONS),
    }


@router.post("", response_model=Queue, status_code=201)
async def create_queue(queue: QueueCreate, store: StoreDep) -> Queue:
    return store.add_queue(queue.name, queue.description, queue.enabled)


@router.get("/{queue_id}", response_model=Queue)
async def get_queue(queue_id: str, store: StoreDep) -> Queue:
    with translate_errors(f"GET /queues/{queue_id}"):
        return find_queue(store.state.queues, queue_id)


@router.patch("/{queue_id}", response_model=Queue)
async def update_queue(queue_id: str, store: StoreDep, updates: Dict[str, Any] = Body(...)) -> Queue:
    """
    Raises:
        HTTPException 404: Unknown queue.
        HTTPException 409: Attempt to change the id or the signal list.
    """
    with translate_errors(f"PATCH /queues/{queue_id}"):
        state = store.update_queue(queue_id, updates)
        return find_queue(state.queues, queue_id)


@router.delete("/{queue_id}", status_code=204)
async def delete_queue(queue_id: str, store: StoreDep) -> Response:
    with translate_errors(f"DELETE /queues/{queue_id}"):
        store.remove_queue(queue_id)
    return Response(status_code=204)


# =============================================================================
# Signal Templates
# =============================================================================


@router.post("/{queue_id}/signals", response_model=SignalTemplate, status_code=201)
async def create_signal(queue_id: str, store: StoreDep, template: Dict[str, Any] = Body(...)) -> SignalTemplate:
    """
    Append a signal template to a queue. An id is generated when absent.

    Raises:
        HTTPException 404: Unknown queue.
        HTTPException 409: The queue already holds a signal with this id.
        HTTPException 422: Incomplete template or out-of-range values.
    """
    data = dict(template)
    if not data.get("id"):
        data["id"] = new_id(SIGNAL_PREFIX)

    with translate_errors(f"POST /queues/{queue_id}/signals"):
        state = store.add_signal(queue_id, data)
        return find_signal(find_queue(state.queues, queue_id), data["id"])


@router.patch("/{queue_id}/signals/{signal_id}", response_model=SignalTemplate)
async def update_signal(
    queue_id: str,
    signal_id: str,
    store: StoreDep,
    updates: Dict[str, Any] = Body(...),
) -> SignalTemplate:
    """
    Raises:
        HTTPException 404: Unknown queue or signal.
        HTTPException 409: Attempt to change the signal id.
        HTTPException 422: Merged template incomplete or out of range.
    """
    with translate_errors(f"PATCH /queues/{queue_id}/signals/{signal_id}"):
        state = store.update_signal(queue_id, signal_id, updates)
        return find_signal(find_queue(state.queues, queue_id), signal_id)


@router.delete("/{queue_id}/signals/{signal_id}", status_code=204)
async def delete_signal(queue_id: str, signal_id: str, store: StoreDep) -> Response:
    with translate_errors(f"DELETE /queues/{queue_id}/signals/{signal_id}"):
        store.remove_signal(queue_id, signal_id)
    return Response(status_code=204)

"""
Signal Template Builder

Five-step editor for one signal template:

    metric -> operator -> conditions -> actions -> review

Navigation is free in both directions and never validates; a draft may reach
review while still incomplete. next() at review and back() at metric leave
the step unchanged.

The builder holds a single SignalDraft. A new draft starts from the catalog
defaults with a freshly generated id; editing seeds the draft from the stored
template and reuses its id verbatim. Nothing reaches the queues until save():

- new template  -> appended to the queue
- edit          -> replaces the stored template with the same id

cancel() discards the draft. After save() or cancel() the builder is closed
and refuses further use. A failed save leaves the builder open with the draft
untouched so the caller can fix the reported field.
"""

import logging
from typing import Any, List, Optional

from loyalty_backend.core.errors import LockedEntryError
from loyalty_backend.models.enums import BuilderStep
from loyalty_backend.models.schemas import Queue, SignalDraft, SignalTemplate
from loyalty_backend.services.earning_rules import as_partial
from loyalty_backend.services.identifiers import SIGNAL_PREFIX, new_id
from loyalty_backend.services.queues import add_signal, find_queue, find_signal, replace_signal
from loyalty_backend.services.signal_templates import (
    DRAFT_DEFAULTS,
    find_missing_fields,
    materialize_template,
)


logger = logging.getLogger(__name__)


STEPS: List[BuilderStep] = list(BuilderStep)


class SignalTemplateBuilder:
    """
    Draft state machine for creating or editing one signal template.

    Example:
        >>> builder = SignalTemplateBuilder("fraud_risk")
        >>> builder.update({"name": "Redemption spike", "actions": ["Flag for manual review"]})
        >>> queues = builder.save(queues)
    """

    def __init__(self, queue_id: str, existing: Optional[SignalTemplate] = None):
        """
        Args:
            queue_id: Queue the template belongs to.
            existing: Stored template to edit; None starts a new draft.
        """
        self.queue_id = queue_id
        self.is_editing = existing is not None
        self._step_index = 0
        self._closed = False

        if existing is not None:
            self._draft = SignalDraft.model_validate(existing.model_dump())
        else:
            self._draft = SignalDraft.model_validate({**DRAFT_DEFAULTS, "id": new_id(SIGNAL_PREFIX)})

    @classmethod
    def for_signal(cls, queues: List[Queue], queue_id: str, signal_id: str) -> "SignalTemplateBuilder":
        """
        Open an edit session on a stored template.

        Raises:
            NotFoundError: Unknown queue or signal id.
        """
        signal = find_signal(find_queue(queues, queue_id), signal_id)
        return cls(queue_id, existing=signal)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def step(self) -> BuilderStep:
        return STEPS[self._step_index]

    @property
    def draft(self) -> SignalDraft:
        return self._draft

    @property
    def is_open(self) -> bool:
        return not self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Signal builder is closed")

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def next(self) -> BuilderStep:
        """Advance one step; no-op at review."""
        self._ensure_open()
        self._step_index = min(self._step_index + 1, len(STEPS) - 1)
        return self.step

    def back(self) -> BuilderStep:
        """Go back one step; no-op at metric."""
        self._ensure_open()
        self._step_index = max(self._step_index - 1, 0)
        return self.step

    def go_to(self, step: BuilderStep) -> BuilderStep:
        """Jump directly to a step."""
        self._ensure_open()
        self._step_index = STEPS.index(BuilderStep(step))
        return self.step

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def update(self, partial: Any) -> SignalDraft:
        """
        Merge fields into the draft. Present keys are applied, including None.

        Raises:
            LockedEntryError: Attempt to change the draft id.
            pydantic.ValidationError: Invalid field value.
        """
        self._ensure_open()
        changes = as_partial(partial)
        if "id" in changes and changes["id"] != self._draft.id:
            raise LockedEntryError("Signal", self._draft.id, "Signal id cannot be changed")

        self._draft = SignalDraft.model_validate({**self._draft.model_dump(), **changes})
        return self._draft

    def toggle_action(self, action: str) -> List[str]:
        """Add the action if absent, remove it if present."""
        self._ensure_open()
        actions = list(self._draft.actions or [])
        if action in actions:
            actions.remove(action)
        else:
            actions.append(action)
        self._draft = self._draft.model_copy(update={"actions": actions})
        return actions

    def missing_fields(self) -> List[str]:
        return find_missing_fields(self._draft.model_dump())

    def preview(self) -> SignalTemplate:
        """
        Materialize the draft without saving it.

        Raises:
            IncompleteTemplateError / InvalidRangeError: Draft not savable yet.
        """
        return materialize_template(self._draft.model_dump())

    # -------------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------------

    def save(self, queues: List[Queue]) -> List[Queue]:
        """
        Materialize the draft and hand it to the owning queue.

        Args:
            queues: Current queue list.

        Returns:
            New queue list with the template appended (new) or replaced (edit).

        Raises:
            RuntimeError: Builder already closed.
            IncompleteTemplateError: Required field(s) missing.
            InvalidRangeError: Out-of-range value, e.g. threshold >= thresholdMax.
            NotFoundError: Unknown queue, or the edited template was removed.
        """
        self._ensure_open()
        template = materialize_template(self._draft.model_dump())

        if self.is_editing:
            updated = replace_signal(queues, self.queue_id, template)
        else:
            updated = add_signal(queues, self.queue_id, template)

        self._closed = True
        logger.info(
            f"Signal '{template.name}' saved to queue {self.queue_id} "
            f"({'replace' if self.is_editing else 'append'})"
        )
        return updated

    def cancel(self) -> None:
        """Discard the draft; stored templates are untouched."""
        self._ensure_open()
        self._closed = True
        logger.debug(f"Signal draft {self._draft.id} discarded")

"""
In-memory state store for the onboarding wizard.

The store owns the single reference to the current OnboardingState. Every
mutation runs under one lock: the service function computes a new state
from the current snapshot and the store swaps the reference only when the
function returns. A service error therefore leaves the state untouched.

KPI counters are derived data. The store recomputes them with derive_kpis()
after every attribute catalog change (toggle, custom attribute, entity
switch), so kpiCounts always matches the catalog.

Lifecycle (mirrors a connection-pool singleton):

    init_store()   create the process-wide store if missing
    get_store()    return it, creating it lazily
    reset_store()  replace it with a fresh store (tests, wizard restart)

Durable persistence is out of scope. export_state() and load_state() move
the rule configuration (value program and queues) in and out as a
versioned document.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from loyalty_backend.core.config import get_settings
from loyalty_backend.core.errors import InvalidRangeError
from loyalty_backend.models.enums import HierarchyDirection, TierColor, ValueType
from loyalty_backend.models.schemas import (
    AttributeCatalog,
    HierarchyLevel,
    OnboardingState,
    Queue,
    StateDocument,
    Tier,
)
from loyalty_backend.services import attribute_catalog, organization, queues, value_program
from loyalty_backend.services.kpi_derivation import derive_catalog_kpis
from loyalty_backend.services.signal_builder import SignalTemplateBuilder


logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def initial_state(entity: Optional[str] = None) -> OnboardingState:
    """
    Build a fresh onboarding state.

    Args:
        entity: Entity whose attribute set seeds the catalog.
            Defaults to Settings.default_entity.
    """
    catalog = attribute_catalog.catalog_for_entity(entity or get_settings().default_entity)
    return OnboardingState(
        organizationHierarchy=organization.default_organization_hierarchy(),
        customerHierarchy=organization.default_customer_hierarchy(),
        entityAttributes=catalog,
        kpiCounts=derive_catalog_kpis(catalog),
        valueProgram=value_program.default_value_program(),
        queues=queues.default_queues(),
    )


class OnboardingStore:
    """
    Single-writer holder of the onboarding state.

    Reads return the current immutable snapshot; callers never observe a
    half-applied update.
    """

    def __init__(self, state: Optional[OnboardingState] = None):
        self._lock = threading.Lock()
        self._state = state if state is not None else initial_state()

    @property
    def state(self) -> OnboardingState:
        return self._state

    def _apply(self, mutate: Callable[[OnboardingState], OnboardingState]) -> OnboardingState:
        with self._lock:
            self._state = mutate(self._state)
            return self._state

    def _with_catalog(self, state: OnboardingState, catalog: AttributeCatalog) -> OnboardingState:
        return state.model_copy(update={
            "entityAttributes": catalog,
            "kpiCounts": derive_catalog_kpis(catalog),
        })

    # =========================================================================
    # Attribute Catalog & KPIs
    # =========================================================================

    def select_entity(self, entity: str) -> OnboardingState:
        """Load the attribute set of another entity and recompute KPIs."""
        catalog = attribute_catalog.catalog_for_entity(entity)
        logger.info(f"Entity switched to {entity}")
        return self._apply(lambda state: self._with_catalog(state, catalog))

    def set_attribute_enabled(self, name: str, enabled: bool) -> OnboardingState:
        return self._apply(lambda state: self._with_catalog(
            state, attribute_catalog.set_attribute_enabled(state.entityAttributes, name, enabled)
        ))

    def add_custom_attribute(self, name: str, data_type: str = "text") -> OnboardingState:
        return self._apply(lambda state: self._with_catalog(
            state, attribute_catalog.add_custom_attribute(state.entityAttributes, name, data_type)
        ))

    # =========================================================================
    # Organization
    # =========================================================================

    def update_hierarchy_level(self, level_id: str, partial: Any) -> OnboardingState:
        return self._apply(lambda state: state.model_copy(update={
            "organizationHierarchy": organization.update_hierarchy_level(
                state.organizationHierarchy, level_id, partial
            ),
        }))

    def add_custom_hierarchy_level(self, name: str, description: str = "") -> HierarchyLevel:
        with self._lock:
            levels, level = organization.add_custom_hierarchy_level(
                self._state.organizationHierarchy, name, description
            )
            self._state = self._state.model_copy(update={"organizationHierarchy": levels})
            return level

    def reorder_hierarchy_level(self, level_id: str, direction: HierarchyDirection) -> OnboardingState:
        return self._apply(lambda state: state.model_copy(update={
            "organizationHierarchy": organization.reorder_hierarchy_level(
                state.organizationHierarchy, level_id, direction
            ),
        }))

    def update_customer_type(self, level_id: str, partial: Any) -> OnboardingState:
        return self._apply(lambda state: state.model_copy(update={
            "customerHierarchy": organization.update_hierarchy_level(
                state.customerHierarchy, level_id, partial
            ),
        }))

    def add_customer_type(self, name: str, description: str = "") -> HierarchyLevel:
        with self._lock:
            levels, level = organization.add_customer_type(
                self._state.customerHierarchy, name, description
            )
            self._state = self._state.model_copy(update={"customerHierarchy": levels})
            return level

    # =========================================================================
    # Value Program
    # =========================================================================

    def _update_program(self, mutate: Callable[..., Any], *args: Any) -> OnboardingState:
        return self._apply(lambda state: state.model_copy(update={
            "valueProgram": mutate(state.valueProgram, *args),
        }))

    def set_value_type(self, value_type: ValueType) -> OnboardingState:
        return self._update_program(value_program.set_value_type, value_type)

    def update_value_config(self, partial: Any) -> OnboardingState:
        return self._update_program(value_program.update_value_config, partial)

    def set_use_tiers(self, use_tiers: bool) -> OnboardingState:
        return self._update_program(value_program.set_use_tiers, use_tiers)

    def update_earning_rules(self, partial: Any) -> OnboardingState:
        """Merge into the program-wide earning rules."""
        return self._update_program(value_program.update_program_earning_rules, partial)

    def add_tier(
        self,
        name: str,
        threshold: float,
        color: TierColor,
        benefits: Optional[List[str]] = None,
        description: str = "",
    ) -> Tier:
        with self._lock:
            program, tier = value_program.add_tier(
                self._state.valueProgram, name, threshold, color, benefits, description
            )
            self._state = self._state.model_copy(update={"valueProgram": program})
            return tier

    def update_tier(self, tier_id: str, partial: Any) -> OnboardingState:
        return self._update_program(value_program.update_tier, tier_id, partial)

    def remove_tier(self, tier_id: str) -> OnboardingState:
        return self._update_program(value_program.remove_tier, tier_id)

    def validate_program(self) -> List[InvalidRangeError]:
        return value_program.validate_program(self._state.valueProgram)

    # =========================================================================
    # Queues & Signals
    # =========================================================================

    def _update_queues(self, mutate: Callable[..., List[Queue]], *args: Any) -> OnboardingState:
        return self._apply(lambda state: state.model_copy(update={
            "queues": mutate(state.queues, *args),
        }))

    def add_queue(self, name: str, description: str = "", enabled: bool = True) -> Queue:
        with self._lock:
            updated, queue = queues.add_queue(self._state.queues, name, description, enabled)
            self._state = self._state.model_copy(update={"queues": updated})
            return queue

    def update_queue(self, queue_id: str, partial: Any) -> OnboardingState:
        return self._update_queues(queues.update_queue, queue_id, partial)

    def remove_queue(self, queue_id: str) -> OnboardingState:
        return self._update_queues(queues.remove_queue, queue_id)

    def add_signal(self, queue_id: str, template: Any) -> OnboardingState:
        return self._update_queues(queues.add_signal, queue_id, template)

    def update_signal(self, queue_id: str, signal_id: str, partial: Any) -> OnboardingState:
        return self._update_queues(queues.update_signal, queue_id, signal_id, partial)

    def remove_signal(self, queue_id: str, signal_id: str) -> OnboardingState:
        return self._update_queues(queues.remove_signal, queue_id, signal_id)

    def open_signal_builder(self, queue_id: str, signal_id: Optional[str] = None) -> SignalTemplateBuilder:
        """
        Start a builder session for a new template or an existing one.

        Raises:
            NotFoundError: Unknown queue or signal id.
        """
        current = self._state.queues
        if signal_id is None:
            queues.find_queue(current, queue_id)
            return SignalTemplateBuilder(queue_id)
        return SignalTemplateBuilder.for_signal(current, queue_id, signal_id)

    def save_signal(self, builder: SignalTemplateBuilder) -> OnboardingState:
        """Commit a builder draft against the latest queue list."""
        return self._apply(lambda state: state.model_copy(update={
            "queues": builder.save(state.queues),
        }))

    # =========================================================================
    # Export / Import
    # =========================================================================

    def export_state(self) -> Dict[str, Any]:
        """Versioned JSON-ready document of the value program and queues."""
        snapshot = self._state
        document = StateDocument(
            schemaVersion=SCHEMA_VERSION,
            valueProgram=snapshot.valueProgram,
            queues=snapshot.queues,
        )
        return document.model_dump(mode="json")

    def load_state(self, document: Mapping[str, Any]) -> OnboardingState:
        """
        Replace the value program and queues from an exported document.

        Raises:
            InvalidRangeError: Missing or unsupported schemaVersion.
            pydantic.ValidationError: Malformed document.
        """
        version = document.get("schemaVersion")
        if version != SCHEMA_VERSION:
            raise InvalidRangeError(
                "schemaVersion",
                f"Unsupported schema version {version!r}; expected {SCHEMA_VERSION}",
                version,
            )

        loaded = StateDocument.model_validate(dict(document))
        logger.info(
            f"Loaded state document: {len(loaded.valueProgram.tiers)} tiers, "
            f"{len(loaded.queues)} queues"
        )
        return self._apply(lambda state: state.model_copy(update={
            "valueProgram": loaded.valueProgram,
            "queues": loaded.queues,
        }))


# =============================================================================
# Process-wide Store Singleton
# =============================================================================

_store: Optional[OnboardingStore] = None
_store_lock = threading.Lock()


def init_store(state: Optional[OnboardingState] = None) -> OnboardingStore:
    """
    Create the process-wide store if it does not exist yet.

    Idempotent: an existing store is returned unchanged.
    """
    global _store
    with _store_lock:
        if _store is None:
            _store = OnboardingStore(state)
            logger.info("Onboarding store initialized")
        return _store


def get_store() -> OnboardingStore:
    """Return the process-wide store, initializing it on first use."""
    if _store is None:
        return init_store()
    return _store


def reset_store(state: Optional[OnboardingState] = None) -> OnboardingStore:
    """Replace the process-wide store with a fresh one."""
    global _store
    with _store_lock:
        _store = OnboardingStore(state)
        return _store

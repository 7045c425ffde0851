"""
FastAPI router for the organization step of the onboarding wizard.

Key Endpoints:
- GET /organization - Full onboarding state snapshot
- PUT /organization/entity - Select the entity whose attributes are edited
- PUT /organization/attributes/{name} - Enable or disable an attribute
- POST /organization/attributes - Add a custom attribute
- GET /organization/kpis - Derived KPI counters
- PATCH /organization/hierarchy/{level_id} - Update a hierarchy level
- POST /organization/hierarchy - Add a custom hierarchy level
- POST /organization/hierarchy/{level_id}/move - Move a level up or down
- POST /organization/customer-types - Add a customer type
- PATCH /organization/customer-types/{level_id} - Update a customer type

Every catalog change recomputes the KPI counters inside the store, so the
responses always carry counters that match the attribute set.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body

from loyalty_backend.api.errors import translate_errors
from loyalty_backend.core.dependencies import StoreDep
from loyalty_backend.models.schemas import (
    AttributeToggle,
    CustomAttributeCreate,
    EntitySelection,
    HierarchyLevel,
    HierarchyLevelCreate,
    HierarchyMove,
    KPICounters,
    OnboardingState,
)


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# State & Entity Attributes
# =============================================================================


@router.get("", response_model=OnboardingState)
async def get_state(store: StoreDep) -> OnboardingState:
    """Return the current onboarding state."""
    return store.state


@router.put("/entity", response_model=OnboardingState)
async def select_entity(selection: EntitySelection, store: StoreDep) -> OnboardingState:
    """
    Switch the attribute catalog to another entity.

    Raises:
        HTTPException 404: Unknown entity.
    """
    with translate_errors("PUT /organization/entity"):
        return store.select_entity(selection.entity)


@router.put("/attributes/{name:path}", response_model=OnboardingState)
async def toggle_attribute(name: str, toggle: AttributeToggle, store: StoreDep) -> OnboardingState:
    """
    Enable or disable one attribute of the selected entity.

    Attribute names may contain slashes (e.g. "Store Format/Type").

    Raises:
        HTTPException 404: Unknown attribute.
        HTTPException 409: Disabling a required identity attribute.
    """
    with translate_errors(f"PUT /organization/attributes/{name}"):
        return store.set_attribute_enabled(name, toggle.enabled)


@router.post("/attributes", response_model=OnboardingState, status_code=201)
async def create_custom_attribute(attribute: CustomAttributeCreate, store: StoreDep) -> OnboardingState:
    """
    Raises:
        HTTPException 409: An attribute with this name already exists.
    """
    with translate_errors("POST /organization/attributes"):
        state = store.add_custom_attribute(attribute.name, attribute.dataType)
    logger.info(f"Custom attribute '{attribute.name}' added to {state.entityAttributes.entity}")
    return state


@router.get("/kpis", response_model=KPICounters)
async def get_kpis(store: StoreDep) -> KPICounters:
    """Return the KPI counters derived from the current attribute catalog."""
    return store.state.kpiCounts


# =============================================================================
# Business Hierarchy
# =============================================================================


@router.patch("/hierarchy/{level_id}", response_model=HierarchyLevel)
async def update_hierarchy_level(
    level_id: str,
    store: StoreDep,
    updates: Dict[str, Any] = Body(...),
) -> HierarchyLevel:
    """
    Merge fields into one organization level.

    Raises:
        HTTPException 404: Unknown level.
        HTTPException 409: Changing the id or disabling a required level.
    """
    with translate_errors(f"PATCH /organization/hierarchy/{level_id}"):
        state = store.update_hierarchy_level(level_id, updates)
    return next(level for level in state.organizationHierarchy if level.id == level_id)


@router.post("/hierarchy", response_model=HierarchyLevel, status_code=201)
async def create_hierarchy_level(level: HierarchyLevelCreate, store: StoreDep) -> HierarchyLevel:
    """Append a custom organization level."""
    return store.add_custom_hierarchy_level(level.name, level.description)


@router.post("/hierarchy/{level_id}/move", response_model=OnboardingState)
async def move_hierarchy_level(level_id: str, move: HierarchyMove, store: StoreDep) -> OnboardingState:
    """
    Swap a level with its neighbour; moving past either end changes nothing.

    Raises:
        HTTPException 404: Unknown level.
    """
    with translate_errors(f"POST /organization/hierarchy/{level_id}/move"):
        return store.reorder_hierarchy_level(level_id, move.direction)


# =============================================================================
# Customer Types
# =============================================================================


@router.post("/customer-types", response_model=HierarchyLevel, status_code=201)
async def create_customer_type(customer_type: HierarchyLevelCreate, store: StoreDep) -> HierarchyLevel:
    """
    Raises:
        HTTPException 409: Duplicate name while uniqueness is enforced.
    """
    with translate_errors("POST /organization/customer-types"):
        return store.add_customer_type(customer_type.name, customer_type.description)


@router.patch("/customer-types/{level_id}", response_model=HierarchyLevel)
async def update_customer_type(
    level_id: str,
    store: StoreDep,
    updates: Dict[str, Any] = Body(...),
) -> HierarchyLevel:
    with translate_errors(f"PATCH /organization/customer-types/{level_id}"):
        state = store.update_customer_type(level_id, updates)
    return next(level for level in state.customerHierarchy if level.id == level_id)

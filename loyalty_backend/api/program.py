"""
FastAPI router for the value program: value type, value config, tiers and
earning rules.

Key Endpoints:
- GET /program - Current value program
- PUT /program/value-type - Select the value type (resets valueConfig)
- PATCH /program/value-config - Merge fields into the current valueConfig
- PUT /program/use-tiers - Switch between program-wide and tiered rules
- PATCH /program/earning-rules - Merge into the program-wide earning rules
- GET /program/earning-rules - Authoritative rules (program or ?tier_id=)
- POST /program/tiers - Create a tier
- PATCH /program/tiers/{tier_id} - Merge into one tier
- DELETE /program/tiers/{tier_id} - Remove a tier
- GET /program/validation - Finalize-time validation report

PATCH bodies are partial documents. Sub-rules that are not mentioned keep
their current values; a sub-rule is turned off with {"enabled": false},
which keeps its configured numbers.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query, Response

from loyalty_backend.api.errors import translate_errors
from loyalty_backend.core.dependencies import StoreDep
from loyalty_backend.models.schemas import (
    EarningRules,
    Tier,
    TierCreate,
    UseTiersSelection,
    ValidationReport,
    ValueProgram,
    ValueTypeSelection,
)
from loyalty_backend.services.value_program import get_tier, resolve_earning_rules


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Value Program
# =============================================================================


@router.get("", response_model=ValueProgram)
async def get_program(store: StoreDep) -> ValueProgram:
    return store.state.valueProgram


@router.put("/value-type", response_model=ValueProgram)
async def select_value_type(selection: ValueTypeSelection, store: StoreDep) -> ValueProgram:
    """Select the value type. Switching types resets valueConfig to the new type's defaults."""
    return store.set_value_type(selection.valueType).valueProgram


@router.patch("/value-config", response_model=ValueProgram)
async def update_value_config(store: StoreDep, updates: Dict[str, Any] = Body(...)) -> ValueProgram:
    """
    Merge fields into the valueConfig of the current value type.

    Raises:
        HTTPException 422: Field of another variant, or out-of-range value.
    """
    with translate_errors("PATCH /program/value-config"):
        return store.update_value_config(updates).valueProgram


@router.put("/use-tiers", response_model=ValueProgram)
async def select_use_tiers(selection: UseTiersSelection, store: StoreDep) -> ValueProgram:
    """Flip tiering mode. Both rule sets are retained across switches."""
    return store.set_use_tiers(selection.useTiers).valueProgram


# =============================================================================
# Earning Rules
# =============================================================================


@router.patch("/earning-rules", response_model=ValueProgram)
async def update_earning_rules(store: StoreDep, updates: Dict[str, Any] = Body(...)) -> ValueProgram:
    """
    Raises:
        HTTPException 422: Negative values, unknown sub-rule, or invalid shape.
    """
    with translate_errors("PATCH /program/earning-rules"):
        return store.update_earning_rules(updates).valueProgram


@router.get("/earning-rules", response_model=EarningRules)
async def get_earning_rules(
    store: StoreDep,
    tier_id: Optional[str] = Query(None, description="Tier whose rules to return while tiers are in use"),
) -> EarningRules:
    """
    Return the earning rules that currently apply.

    Raises:
        HTTPException 404: Unknown tier.
        HTTPException 422: Tiers are in use and no tier_id was given.
    """
    with translate_errors("GET /program/earning-rules"):
        return resolve_earning_rules(store.state.valueProgram, tier_id)


# =============================================================================
# Tiers
# =============================================================================


@router.post("/tiers", response_model=Tier, status_code=201)
async def create_tier(tier: TierCreate, store: StoreDep) -> Tier:
    """
    Raises:
        HTTPException 409: Duplicate name while uniqueness is enforced.
        HTTPException 422: Negative threshold.
    """
    with translate_errors("POST /program/tiers"):
        return store.add_tier(
            name=tier.name,
            threshold=tier.threshold,
            color=tier.color,
            benefits=tier.benefits,
            description=tier.description,
        )


@router.patch("/tiers/{tier_id}", response_model=Tier)
async def update_tier(tier_id: str, store: StoreDep, updates: Dict[str, Any] = Body(...)) -> Tier:
    """
    Merge fields into one tier; an ``earningRules`` partial is merged too.

    Raises:
        HTTPException 404: Unknown tier.
        HTTPException 409: Changing the tier id.
        HTTPException 422: Invalid values.
    """
    with translate_errors(f"PATCH /program/tiers/{tier_id}"):
        state = store.update_tier(tier_id, updates)
        return get_tier(state.valueProgram, tier_id)


@router.delete("/tiers/{tier_id}", status_code=204)
async def delete_tier(tier_id: str, store: StoreDep) -> Response:
    with translate_errors(f"DELETE /program/tiers/{tier_id}"):
        store.remove_tier(tier_id)
    return Response(status_code=204)


# =============================================================================
# Finalize-time Validation
# =============================================================================


@router.get("/validation", response_model=ValidationReport)
async def validate_program(store: StoreDep) -> ValidationReport:
    """Report every problem that blocks finalizing the program."""
    errors = store.validate_program()
    if errors:
        logger.info(f"Program validation found {len(errors)} problem(s)")
    return ValidationReport(
        valid=not errors,
        errors=[error.to_response().model_dump() for error in errors],
    )

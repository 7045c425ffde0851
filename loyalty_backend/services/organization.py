"""
Organization Service

Business hierarchy (franchisor down to department) and customer types
(primary member, family, corporate account). Both are ordered lists of
HierarchyLevel; level ids double as entity ids for the attribute catalog.

Rules:
- Level ids never change once created
- Required levels (Franchisor HQ, Primary Member) cannot be disabled
- Reordering swaps a level with its neighbour; moving past either end is a no-op
"""

import logging
from typing import Any, List, Tuple

from loyalty_backend.core.config import get_settings
from loyalty_backend.core.errors import DuplicateNameError, LockedEntryError, NotFoundError
from loyalty_backend.models.enums import HierarchyDirection
from loyalty_backend.models.schemas import HierarchyLevel
from loyalty_backend.services.earning_rules import as_partial
from loyalty_backend.services.identifiers import CUSTOMER_TYPE_PREFIX, HIERARCHY_PREFIX, new_id


logger = logging.getLogger(__name__)


# =============================================================================
# Defaults
# =============================================================================

# (id, name, description, enabled, required)
DEFAULT_ORGANIZATION_HIERARCHY: Tuple[Tuple[str, str, str, bool, bool], ...] = (
    ("corporate", "Franchisor HQ", "Top-level organization entity", True, True),
    ("master", "Master Franchisee", "Multi-unit franchise operators", False, False),
    ("franchisee", "Franchisee", "Individual franchise owners", True, False),
    ("store", "Store Location", "Physical store locations", True, False),
    ("department", "Department", "Store departments or teams", False, False),
)

DEFAULT_CUSTOMER_HIERARCHY: Tuple[Tuple[str, str, str, bool, bool], ...] = (
    ("primary", "Primary Member", "Account holder", True, True),
    ("family", "Family Members", "Linked family accounts", False, False),
    ("corporate_account", "Corporate Account", "B2B parent account", False, False),
)


def _build_levels(rows: Tuple[Tuple[str, str, str, bool, bool], ...]) -> List[HierarchyLevel]:
    return [
        HierarchyLevel(
            id=level_id,
            name=name,
            displayName=name,
            description=description,
            enabled=enabled,
            required=required,
        )
        for level_id, name, description, enabled, required in rows
    ]


def default_organization_hierarchy() -> List[HierarchyLevel]:
    return _build_levels(DEFAULT_ORGANIZATION_HIERARCHY)


def default_customer_hierarchy() -> List[HierarchyLevel]:
    return _build_levels(DEFAULT_CUSTOMER_HIERARCHY)


# =============================================================================
# Operations
# =============================================================================


def find_level(levels: List[HierarchyLevel], level_id: str) -> HierarchyLevel:
    """
    Raises:
        NotFoundError: If no level has this id.
    """
    for level in levels:
        if level.id == level_id:
            return level
    raise NotFoundError("HierarchyLevel", level_id)


def update_hierarchy_level(
    levels: List[HierarchyLevel],
    level_id: str,
    partial: Any
) -> List[HierarchyLevel]:
    """
    Merge a partial update into one level.

    Works for both the organization hierarchy and the customer types.

    Args:
        levels: Current level list.
        level_id: Level to update.
        partial: Mapping or model with the fields to change.

    Returns:
        New level list with the merged level at the same position.

    Raises:
        NotFoundError: Unknown level id.
        LockedEntryError: Id change, or disabling/unflagging a required level.
    """
    level = find_level(levels, level_id)
    changes = as_partial(partial)

    if changes.pop("id", level_id) != level_id:
        raise LockedEntryError("HierarchyLevel", level_id, "Hierarchy level id cannot be changed")
    if level.required and (changes.get("enabled") is False or changes.get("required") is False):
        raise LockedEntryError("HierarchyLevel", level_id, f"'{level.name}' is required and cannot be disabled")

    updated = HierarchyLevel.model_validate({**level.model_dump(), **changes})
    return [updated if existing.id == level_id else existing for existing in levels]


def add_custom_hierarchy_level(
    levels: List[HierarchyLevel],
    name: str,
    description: str = ""
) -> Tuple[List[HierarchyLevel], HierarchyLevel]:
    """Append an enabled custom organization level. Returns (levels, new level)."""
    level = HierarchyLevel(
        id=new_id(HIERARCHY_PREFIX),
        name=name,
        displayName=name,
        description=description,
        enabled=True,
    )
    logger.info(f"Hierarchy level '{name}' added ({level.id})")
    return [*levels, level], level


def reorder_hierarchy_level(
    levels: List[HierarchyLevel],
    level_id: str,
    direction: HierarchyDirection
) -> List[HierarchyLevel]:
    """
    Swap a level with its neighbour in the given direction.

    Raises:
        NotFoundError: Unknown level id.
    """
    index = levels.index(find_level(levels, level_id))
    target = index - 1 if HierarchyDirection(direction) == HierarchyDirection.UP else index + 1

    if target < 0 or target >= len(levels):
        return list(levels)

    reordered = list(levels)
    reordered[index], reordered[target] = reordered[target], reordered[index]
    return reordered


def add_customer_type(
    levels: List[HierarchyLevel],
    name: str,
    description: str = ""
) -> Tuple[List[HierarchyLevel], HierarchyLevel]:
    """
    Append an enabled customer type. Returns (levels, new level).

    Raises:
        DuplicateNameError: Name already used and
            Settings.enforce_unique_customer_type_names is on.
    """
    if get_settings().enforce_unique_customer_type_names:
        wanted = name.strip().casefold()
        if any(level.name.strip().casefold() == wanted for level in levels):
            raise DuplicateNameError("CustomerType", name)

    level = HierarchyLevel(
        id=new_id(CUSTOMER_TYPE_PREFIX),
        name=name,
        displayName=name,
        description=description,
        enabled=True,
    )
    logger.info(f"Customer type '{name}' added ({level.id})")
    return [*levels, level], level

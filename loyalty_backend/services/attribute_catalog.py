"""
Attribute Catalog Service

Static KPI weights for entity attributes and the per-entity attribute sets the
wizard starts from, plus the catalog mutations exposed to the organization
screens:

- catalog_for_entity: attribute set for an organization or customer entity
- set_attribute_enabled: toggle one attribute (required attributes are locked)
- add_custom_attribute: add an enabled attribute with no KPI weight

Every mutation returns a new AttributeCatalog. Callers are expected to rerun
derive_kpis() on the result; the onboarding store does this automatically.
"""

import logging
from typing import Dict, Optional

from loyalty_backend.core.errors import DuplicateNameError, LockedEntryError, NotFoundError
from loyalty_backend.models.schemas import AttributeCatalog, AttributeConfig, KPIWeight


logger = logging.getLogger(__name__)


# =============================================================================
# KPI Weights
# Contribution of each attribute to the KPI counters while it is enabled.
# Attributes absent from this table contribute nothing.
# =============================================================================

KPI_WEIGHTS: Dict[str, KPIWeight] = {
    # Store
    "Square Footage": KPIWeight(kpis=3, analytics=2, ai=1),
    "Operating Hours": KPIWeight(kpis=2, analytics=1, ai=1),
    "Store Format/Type": KPIWeight(kpis=1, analytics=1, ai=0),
    "Seating Capacity": KPIWeight(kpis=2, analytics=1, ai=1),
    "Staff Count": KPIWeight(kpis=3, analytics=2, ai=1),
    "Address & Location": KPIWeight(kpis=2, analytics=1, ai=1),
    "Drive-Thru": KPIWeight(kpis=2, analytics=1, ai=1),
    "Parking Spaces": KPIWeight(kpis=1, analytics=1, ai=0),
    # Corporate / organization
    "Region": KPIWeight(kpis=3, analytics=2, ai=1),
    "Number of Locations": KPIWeight(kpis=3, analytics=2, ai=2),
    "Territory Size": KPIWeight(kpis=2, analytics=1, ai=1),
    "Support Center": KPIWeight(kpis=1, analytics=1, ai=0),
    "Years in Operation": KPIWeight(kpis=2, analytics=1, ai=1),
    # Customer
    "Age Group": KPIWeight(kpis=2, analytics=2, ai=1),
    "Income Bracket": KPIWeight(kpis=2, analytics=2, ai=1),
    "Household Size": KPIWeight(kpis=1, analytics=1, ai=1),
    "Communication Preferences": KPIWeight(kpis=1, analytics=1, ai=0),
    "Device Type": KPIWeight(kpis=1, analytics=1, ai=1),
    "Social Media Presence": KPIWeight(kpis=1, analytics=1, ai=1),
}


def _identity(enabled: bool = True) -> AttributeConfig:
    return AttributeConfig(enabled=enabled, required=True)


def _plain(enabled: bool) -> AttributeConfig:
    return AttributeConfig(enabled=enabled)


def _weighted(name: str, enabled: bool, weight_name: Optional[str] = None) -> AttributeConfig:
    return AttributeConfig(enabled=enabled, kpiWeight=KPI_WEIGHTS[weight_name or name])


# =============================================================================
# Entity Attribute Sets
# Keys are entity ids used by the organization and customer hierarchies.
# =============================================================================

ENTITY_ATTRIBUTE_SETS: Dict[str, Dict[str, AttributeConfig]] = {
    "corporate": {
        "Corporate ID": _identity(),
        "Corporate Name": _identity(),
        "Address & Location": _weighted("Address & Location", True),
        "Region": _weighted("Region", True),
        "Number of Locations": _weighted("Number of Locations", True),
        "Support Center": _weighted("Support Center", False),
        "Years in Operation": _weighted("Years in Operation", False),
    },
    "master": {
        "Master Franchisee ID": _identity(),
        "Master Franchisee Name": _identity(),
        "Address & Location": _weighted("Address & Location", True),
        "Territory Size": _weighted("Territory Size", True),
        "Number of Locations": _weighted("Number of Locations", True),
        "Years in Operation": _weighted("Years in Operation", False),
    },
    "franchisee": {
        "Franchisee ID": _identity(),
        "Franchisee Name": _identity(),
        "Address & Location": _weighted("Address & Location", True),
        "Number of Locations": _weighted("Number of Locations", True),
        "Years in Operation": _weighted("Years in Operation", False),
    },
    "store": {
        "Store ID": _identity(),
        "Store Name": _identity(),
        "Address & Location": _weighted("Address & Location", True),
        "Square Footage": _weighted("Square Footage", True),
        "Operating Hours": _weighted("Operating Hours", True),
        "Store Format/Type": _weighted("Store Format/Type", False),
        "Seating Capacity": _weighted("Seating Capacity", False),
        "Staff Count": _weighted("Staff Count", False),
        "Drive-Thru": _weighted("Drive-Thru", False),
        "Parking Spaces": _weighted("Parking Spaces", False),
    },
    "department": {
        "Department ID": _identity(),
        "Department Name": _identity(),
        "Staff Count": _weighted("Staff Count", True),
        "Square Footage": _weighted("Square Footage", False),
        "Operating Hours": _weighted("Operating Hours", False),
    },
    "primary": {
        "Member ID": _identity(),
        "First Name": _plain(True),
        "Last Name": _plain(True),
        "Email": _plain(True),
        "Phone Number": _plain(True),
        "Date of Birth": _plain(True),
        "Address & Location": _weighted("Address & Location", True),
        "Age Group": _weighted("Age Group", False),
        "Income Bracket": _weighted("Income Bracket", False),
        "Household Size": _weighted("Household Size", False),
        "Communication Preferences": _weighted("Communication Preferences", False),
        "Device Type": _weighted("Device Type", False),
        "Social Media Presence": _weighted("Social Media Presence", False),
    },
    "family": {
        "Family Member ID": _identity(),
        "First Name": _plain(True),
        "Last Name": _plain(True),
        "Relationship": _plain(True),
        "Date of Birth": _plain(False),
        "Age Group": _weighted("Age Group", False),
    },
    "corporate_account": {
        "Corporate Account ID": _identity(),
        "Company Name": _identity(),
        "Address & Location": _weighted("Address & Location", True),
        "Industry": _plain(True),
        # Employee count unlocks the same KPIs as location count
        "Number of Employees": _weighted("Number of Employees", True, "Number of Locations"),
        "Annual Spend": _plain(False),
    },
}


# =============================================================================
# Catalog Operations
# =============================================================================


def catalog_for_entity(entity: str) -> AttributeCatalog:
    """
    Build the starting attribute catalog for an entity.

    Args:
        entity: Entity id, one of the keys of ENTITY_ATTRIBUTE_SETS.

    Returns:
        AttributeCatalog with the entity's default attribute states.

    Raises:
        NotFoundError: If the entity has no attribute set.
    """
    attributes = ENTITY_ATTRIBUTE_SETS.get(entity)
    if attributes is None:
        raise NotFoundError("Entity", entity)
    return AttributeCatalog(entity=entity, attributes=dict(attributes))


def set_attribute_enabled(catalog: AttributeCatalog, name: str, enabled: bool) -> AttributeCatalog:
    """
    Enable or disable one attribute.

    The attribute keeps its KPI weight while disabled, so re-enabling it
    restores its contribution.

    Raises:
        NotFoundError: If the attribute is not in the catalog.
        LockedEntryError: If a required attribute would be disabled.
    """
    current = catalog.attributes.get(name)
    if current is None:
        raise NotFoundError("Attribute", name)
    if current.required and not enabled:
        logger.warning(f"Refused to disable required attribute '{name}' on {catalog.entity}")
        raise LockedEntryError("Attribute", name, f"Attribute '{name}' is required and cannot be disabled")
    if current.enabled == enabled:
        return catalog

    attributes = dict(catalog.attributes)
    attributes[name] = current.model_copy(update={"enabled": enabled})
    logger.debug(f"Attribute '{name}' on {catalog.entity} set enabled={enabled}")
    return catalog.model_copy(update={"attributes": attributes})


def add_custom_attribute(catalog: AttributeCatalog, name: str, data_type: str = "text") -> AttributeCatalog:
    """
    Add a user-defined attribute. Custom attributes start enabled and carry
    no KPI weight.

    Raises:
        DuplicateNameError: If an attribute with this name already exists.
    """
    name = name.strip()
    if name in catalog.attributes:
        raise DuplicateNameError("Attribute", name)

    attributes = dict(catalog.attributes)
    attributes[name] = AttributeConfig(enabled=True, dataType=data_type)
    logger.info(f"Custom attribute '{name}' ({data_type}) added to {catalog.entity}")
    return catalog.model_copy(update={"attributes": attributes})

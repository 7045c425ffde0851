"""
Identifier generation for tiers, signals, queues and hierarchy entries.

Ids are prefixed random UUIDs, so rapid successive creation never collides.
"""

from uuid import uuid4


TIER_PREFIX = "tier"
SIGNAL_PREFIX = "signal"
QUEUE_PREFIX = "queue"
HIERARCHY_PREFIX = "custom"
CUSTOMER_TYPE_PREFIX = "customer"


def new_id(prefix: str) -> str:
    """Return ``<prefix>_<32 hex chars>``."""
    return f"{prefix}_{uuid4().hex}"

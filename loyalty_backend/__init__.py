"""
Loyalty Onboarding Backend Package.

Rule configuration and derivation engine behind the loyalty onboarding
wizard: earning rules, value program and tiers, signal templates and queues,
and KPI counters derived from entity attributes.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, errors, the onboarding store and dependencies
    - models: Pydantic schemas and enums
    - services: Business logic services
"""

__version__ = "1.0.0"

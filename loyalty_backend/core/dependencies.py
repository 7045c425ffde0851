"""
FastAPI dependency injection module for the loyalty onboarding backend.

Provides reusable dependencies so endpoint handlers never reach for module
globals directly:

- get_store_dependency: Returns the process-wide OnboardingStore
- StoreDep: Annotated alias for handler signatures

Tests swap the store through FastAPI's override mechanism:

    app.dependency_overrides[get_store_dependency] = lambda: OnboardingStore()

Usage Examples:
    @router.get("/program")
    async def get_program(store: StoreDep) -> ValueProgram:
        return store.state.valueProgram
"""

from typing import Annotated

from fastapi import Depends

from loyalty_backend.core.store import OnboardingStore, get_store


# =============================================================================
# Store Dependency
# =============================================================================

def get_store_dependency() -> OnboardingStore:
    """
    Return the process-wide onboarding store.

    Returns:
        OnboardingStore: The store created by init_store() at startup,
            or lazily on first use.
    """
    return get_store()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(store: StoreDep)
StoreDep = Annotated[OnboardingStore, Depends(get_store_dependency)]

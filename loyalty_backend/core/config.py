"""
Settings and environment management module for the loyalty onboarding backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- KPI base floor used by the KPI derivation engine
- Policy switches for tier and customer-type name uniqueness

Environment Variables:
- KPI_BASE_TOTAL / KPI_BASE_ANALYTICS / KPI_BASE_AI: KPI counters that exist
  independent of any entity attribute (default: 10 / 5 / 3)
- ENFORCE_UNIQUE_TIER_NAMES: Refuse a new tier whose name is already in use
- ENFORCE_UNIQUE_CUSTOMER_TYPE_NAMES: Same policy for customer types
- DEFAULT_ENTITY: Entity whose attribute set seeds a fresh onboarding state
- LOG_LEVEL: Root logging level for the API process
- CORS_ORIGINS: Allowed origins for the wizard front end

Usage:
    from loyalty_backend.core.config import get_settings

    settings = get_settings()
    base_total = settings.kpi_base_total
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        kpi_base_total: Base number of KPIs available before any attribute is enabled.
        kpi_base_analytics: Base number of analytics views.
        kpi_base_ai: Base number of AI models.
        enforce_unique_tier_names: Whether add_tier refuses duplicate names.
        enforce_unique_customer_type_names: Whether add_customer_type refuses duplicates.
        default_entity: Entity whose attribute catalog is loaded on startup.
        log_level: Logging level name for the API process.
        cors_origins: Origins allowed by the CORS middleware.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # KPI Derivation Base Floor
    # =========================================================================

    # Counters that exist independent of any enabled attribute.
    # derive_kpis() never returns values below these.
    kpi_base_total: int = 10
    kpi_base_analytics: int = 5
    kpi_base_ai: int = 3

    # =========================================================================
    # Naming Policies
    # =========================================================================

    # Off by default: the wizard historically accepts duplicate names
    enforce_unique_tier_names: bool = False
    enforce_unique_customer_type_names: bool = False

    # =========================================================================
    # Store Seeding
    # =========================================================================

    default_entity: str = 'store'

    # =========================================================================
    # Process Configuration
    # =========================================================================

    log_level: str = 'INFO'
    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid value.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()

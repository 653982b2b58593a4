"""Centralized configuration.

Quick start::

    from simjobs.core.config import get_settings

    settings = get_settings()
    print(settings.database_backend)   # DatabaseBackend.SQLITE
    print(settings.broker_url)

Architecture::

    settings.py       SimJobsSettings (Pydantic) + get_settings() cache
    components.py     Backend enums + validate_component_combination()
"""

from .components import (
    ComponentWarning,
    DatabaseBackend,
    TransportBackend,
    validate_component_combination,
)
from .settings import SimJobsSettings, clear_settings_cache, get_settings

__all__ = [
    "ComponentWarning",
    "DatabaseBackend",
    "TransportBackend",
    "validate_component_combination",
    "SimJobsSettings",
    "clear_settings_cache",
    "get_settings",
]

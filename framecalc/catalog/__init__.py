"""Process module catalog (work items per category and process type)."""

from framecalc.catalog.modules import (
    ProcessModuleCatalog,
    allowed_process_types,
    available_modules,
    default_process_type,
    get_catalog,
    get_module,
)

__all__ = [
    "ProcessModuleCatalog",
    "allowed_process_types",
    "available_modules",
    "default_process_type",
    "get_catalog",
    "get_module",
]

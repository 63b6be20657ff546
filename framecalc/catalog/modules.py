"""YAML-driven process module catalog for FrameCalc.

Each module lists the work items of one (category, process type) pair.
Planners pick 기준층 cycles (5/6/7/8일 사이클) and 표준공정 elsewhere; the
bundled YAML also carries cycle variants of 셋팅층 and PH층, which stay
reachable through ``get_module`` for plans that name them.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from framecalc.config import get_config
from framecalc.errors import CatalogConfigurationError
from framecalc.models import (
    CYCLE_PROCESS_TYPES,
    STANDARD_PROCESS,
    ProcessCategory,
    ProcessModule,
)

logger = structlog.get_logger(__name__)

ALLOWED_PROCESS_TYPES: dict[ProcessCategory, tuple[str, ...]] = {
    ProcessCategory.STRIP: (STANDARD_PROCESS,),
    ProcessCategory.FOUNDATION: (STANDARD_PROCESS,),
    ProcessCategory.BASEMENT: (STANDARD_PROCESS,),
    ProcessCategory.SETTING: (STANDARD_PROCESS,),
    ProcessCategory.STANDARD: tuple(CYCLE_PROCESS_TYPES[n] for n in sorted(CYCLE_PROCESS_TYPES)),
    ProcessCategory.PH: (STANDARD_PROCESS,),
    ProcessCategory.ROOFTOP: (STANDARD_PROCESS,),
}

DEFAULT_PROCESS_TYPES: dict[ProcessCategory, str] = {
    category: STANDARD_PROCESS for category in ProcessCategory
}
DEFAULT_PROCESS_TYPES[ProcessCategory.STANDARD] = CYCLE_PROCESS_TYPES[6]


def allowed_process_types(category: ProcessCategory) -> tuple[str, ...]:
    """Process types a planner may pick for a category."""
    return ALLOWED_PROCESS_TYPES[category]


def default_process_type(category: ProcessCategory) -> str:
    return DEFAULT_PROCESS_TYPES[category]


class ProcessModuleCatalog:
    """Immutable lookup over the catalog modules."""

    def __init__(self, modules: list[ProcessModule]):
        self._modules = tuple(modules)
        self._index: dict[tuple[ProcessCategory, str], ProcessModule] = {}
        for module in self._modules:
            key = (module.category, module.process_type)
            if key in self._index:
                raise CatalogConfigurationError(
                    f"Duplicate module for {module.category.value} / {module.process_type}"
                )
            self._index[key] = module

    @classmethod
    def from_yaml(cls, path: Path) -> ProcessModuleCatalog:
        """Load the catalog from a YAML file.

        Raises:
            CatalogConfigurationError: If the file is missing, not valid YAML
                or does not describe valid modules
        """
        if not path.exists():
            raise CatalogConfigurationError(f"Process module catalog not found: {path}")

        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogConfigurationError(f"Invalid YAML in {path}: {e}") from e

        raw_modules: list[dict[str, Any]] = (data or {}).get("modules") or []
        if not raw_modules:
            raise CatalogConfigurationError(f"No modules defined in {path}")

        try:
            modules = [ProcessModule.model_validate(raw) for raw in raw_modules]
        except ValidationError as e:
            raise CatalogConfigurationError(f"Invalid module definition in {path}: {e}") from e

        logger.debug("Process module catalog loaded", path=str(path), modules=len(modules))
        return cls(modules)

    @property
    def modules(self) -> tuple[ProcessModule, ...]:
        return self._modules

    def get_module(self, category: ProcessCategory, process_type: str) -> ProcessModule | None:
        """Module for a (category, process type) pair, None when not catalogued."""
        return self._index.get((category, process_type))

    def available_modules(self, category: ProcessCategory) -> list[ProcessModule]:
        """Every module catalogued for a category, in file order."""
        return [module for module in self._modules if module.category == category]


@lru_cache(maxsize=4)
def _load_catalog(path: Path) -> ProcessModuleCatalog:
    return ProcessModuleCatalog.from_yaml(path)


def get_catalog(path: Path | None = None) -> ProcessModuleCatalog:
    """Catalog from ``path`` or the configured location, loaded once per path."""
    return _load_catalog(path or get_config().catalog_path)


def get_module(category: ProcessCategory, process_type: str) -> ProcessModule | None:
    return get_catalog().get_module(category, process_type)


def available_modules(category: ProcessCategory) -> list[ProcessModule]:
    return get_catalog().available_modules(category)

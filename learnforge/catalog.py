"""
Model catalog and selector.

The catalog is an ordered, immutable table of upstream models. Its order is
the fallback order used by the completion orchestrator. Three roles point into
the table (fastest, most capable, light general-purpose) and the selector maps
task parameters onto a role with a fixed decision table.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

import structlog

from learnforge.errors import CatalogConfigError
from learnforge.models import Capability, Complexity, ModelDescriptor, Speed

logger = structlog.get_logger()

TECHNICAL_CONTENT_TYPES = frozenset({"technical", "code"})

DEFAULT_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id="llama-3.3-70b-versatile",
        context_window=128000,
        capability=Capability.HIGH,
        speed=Speed.FAST,
        use_cases=frozenset({"complex", "technical", "creative", "detailed"}),
    ),
    ModelDescriptor(
        id="llama3-70b-8192",
        context_window=8192,
        capability=Capability.HIGH,
        speed=Speed.MEDIUM,
        use_cases=frozenset({"complex", "technical", "detailed"}),
    ),
    ModelDescriptor(
        id="llama-3.1-8b-instant",
        context_window=128000,
        capability=Capability.MEDIUM,
        speed=Speed.VERY_FAST,
        use_cases=frozenset({"simple", "interactive", "chat"}),
    ),
    ModelDescriptor(
        id="llama3-8b-8192",
        context_window=8192,
        capability=Capability.MEDIUM,
        speed=Speed.FAST,
        use_cases=frozenset({"general", "simple"}),
    ),
    ModelDescriptor(
        id="gemma2-9b-it",
        context_window=8192,
        capability=Capability.MEDIUM,
        speed=Speed.FAST,
        use_cases=frozenset({"general", "alternative"}),
    ),
    ModelDescriptor(
        id="meta-llama/llama-4-maverick-17b-128e-instruct",
        context_window=131072,
        capability=Capability.HIGH,
        speed=Speed.MEDIUM,
        use_cases=frozenset({"complex", "long-context"}),
    ),
    ModelDescriptor(
        id="qwen-qwq-32b",
        context_window=128000,
        capability=Capability.HIGH,
        speed=Speed.MEDIUM,
        use_cases=frozenset({"alternative", "fallback"}),
    ),
)

DEFAULT_ROLES: Mapping[str, str] = {
    "fastest": "llama-3.1-8b-instant",
    "most_capable": "llama-3.3-70b-versatile",
    "light_general": "llama3-8b-8192",
}

# Alternates tried in order by the topic elaborator after its preferred model
DEFAULT_ELABORATION_CHAIN: tuple[str, ...] = (
    "llama3-70b-8192",
    "llama-3.3-70b-versatile",
    "gemma2-9b-it",
)


class ModelCatalog:
    """Ordered read-only model table; validated once at construction."""

    REQUIRED_ROLES = ("fastest", "most_capable", "light_general")

    def __init__(
        self,
        models: Iterable[ModelDescriptor] = DEFAULT_MODELS,
        roles: Optional[Mapping[str, str]] = None,
        elaboration_chain: Iterable[str] = DEFAULT_ELABORATION_CHAIN,
    ) -> None:
        ordered = tuple(models)
        if not ordered:
            raise CatalogConfigError("Model catalog is empty")
        by_id: dict[str, ModelDescriptor] = {}
        for m in ordered:
            if m.id in by_id:
                raise CatalogConfigError(f"Duplicate model id in catalog: {m.id}")
            by_id[m.id] = m
        self._order = tuple(m.id for m in ordered)
        self._models = MappingProxyType(by_id)

        roles = dict(DEFAULT_ROLES if roles is None else roles)
        for role in self.REQUIRED_ROLES:
            if role not in roles:
                raise CatalogConfigError(f"Model catalog is missing role '{role}'")
        chain = tuple(elaboration_chain)
        for ref in list(roles.values()) + list(chain):
            if ref not in by_id:
                raise CatalogConfigError(f"Referenced model '{ref}' is not in the catalog")
        self._roles = MappingProxyType(roles)
        self._elaboration_chain = chain

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "ModelCatalog":
        """Build from the models.yaml mapping; an empty mapping yields the default catalog."""
        if not data:
            return cls()
        raw_models = data.get("models") or []
        models = [
            ModelDescriptor(
                id=str(m["id"]),
                context_window=int(m.get("context_window", 8192)),
                capability=Capability(m.get("capability", "medium")),
                speed=Speed(m.get("speed", "medium")),
                use_cases=frozenset(m.get("use_cases") or []),
            )
            for m in raw_models
        ]
        catalog = cls(
            models=models or DEFAULT_MODELS,
            roles=data.get("roles") or DEFAULT_ROLES,
            elaboration_chain=data.get("elaboration_chain") or DEFAULT_ELABORATION_CHAIN,
        )
        logger.info("model_catalog_loaded", models=len(catalog), source="models.yaml")
        return catalog

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return (self._models[i] for i in self._order)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def get(self, model_id: str) -> Optional[ModelDescriptor]:
        return self._models.get(model_id)

    @property
    def model_ids(self) -> tuple[str, ...]:
        return self._order

    @property
    def fastest(self) -> str:
        return self._roles["fastest"]

    @property
    def most_capable(self) -> str:
        return self._roles["most_capable"]

    @property
    def light_general(self) -> str:
        return self._roles["light_general"]

    @property
    def elaboration_chain(self) -> tuple[str, ...]:
        return self._elaboration_chain

    def fallback_chain(self, preferred: str) -> list[str]:
        """Preferred model first, then every other catalog model in catalog order."""
        return [preferred] + [m for m in self._order if m != preferred]

    def select_model(
        self,
        task: str,
        content_type: str,
        complexity: Complexity | str = Complexity.MEDIUM,
        interactive: bool = False,
    ) -> str:
        """
        Pick a model id for a task. First matching rule wins:

          1. interactive and not high complexity  -> fastest
          2. high complexity technical/code       -> most capable
          3. medium complexity, not technical     -> light general-purpose
          4. anything else                        -> most capable
        """
        complexity = Complexity(complexity)
        if interactive and complexity != Complexity.HIGH:
            chosen = self.fastest
        elif complexity == Complexity.HIGH and content_type in TECHNICAL_CONTENT_TYPES:
            chosen = self.most_capable
        elif complexity == Complexity.MEDIUM and content_type != "technical":
            chosen = self.light_general
        else:
            chosen = self.most_capable
        logger.debug(
            "model_selected",
            task=task,
            content_type=content_type,
            complexity=complexity.value,
            interactive=interactive,
            model=chosen,
        )
        return chosen


_default_catalog: Optional[ModelCatalog] = None


def default_catalog() -> ModelCatalog:
    """Catalog built from settings (models.yaml override or built-in table), created once."""
    global _default_catalog
    if _default_catalog is None:
        from learnforge.config import get_settings

        _default_catalog = ModelCatalog.from_config(get_settings().model_catalog)
    return _default_catalog


def select_model(
    task: str,
    content_type: str,
    complexity: Complexity | str = Complexity.MEDIUM,
    interactive: bool = False,
) -> str:
    """Module-level selector over the default catalog."""
    return default_catalog().select_model(task, content_type, complexity, interactive)

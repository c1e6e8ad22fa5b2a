"""Model catalog construction, validation and the selector decision table."""

from __future__ import annotations

import pytest

from learnforge.catalog import DEFAULT_MODELS, ModelCatalog
from learnforge.errors import CatalogConfigError
from learnforge.models import Capability, Complexity, ModelDescriptor, Speed
from tests.conftest import make_catalog


def _model(model_id: str) -> ModelDescriptor:
    return ModelDescriptor(id=model_id, context_window=8192, capability=Capability.MEDIUM, speed=Speed.FAST)


class TestDefaultCatalog:
    def test_order_and_roles(self) -> None:
        catalog = ModelCatalog()
        assert len(catalog) == len(DEFAULT_MODELS) == 7
        assert catalog.model_ids[0] == "llama-3.3-70b-versatile"
        assert catalog.fastest == "llama-3.1-8b-instant"
        assert catalog.most_capable == "llama-3.3-70b-versatile"
        assert catalog.light_general == "llama3-8b-8192"
        assert "gemma2-9b-it" in catalog

    def test_elaboration_chain_references_catalog(self) -> None:
        catalog = ModelCatalog()
        assert all(m in catalog for m in catalog.elaboration_chain)

    def test_iteration_follows_declared_order(self) -> None:
        catalog = ModelCatalog()
        assert [m.id for m in catalog] == list(catalog.model_ids)


class TestValidation:
    def test_empty_catalog_rejected(self) -> None:
        with pytest.raises(CatalogConfigError):
            ModelCatalog(models=[])

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(CatalogConfigError, match="Duplicate"):
            ModelCatalog(
                models=[_model("a"), _model("a")],
                roles={"fastest": "a", "most_capable": "a", "light_general": "a"},
                elaboration_chain=["a"],
            )

    def test_role_pointing_outside_catalog_rejected(self) -> None:
        with pytest.raises(CatalogConfigError, match="ghost"):
            ModelCatalog(
                models=[_model("a")],
                roles={"fastest": "a", "most_capable": "ghost", "light_general": "a"},
                elaboration_chain=["a"],
            )

    def test_missing_role_rejected(self) -> None:
        with pytest.raises(CatalogConfigError, match="light_general"):
            ModelCatalog(models=[_model("a")], roles={"fastest": "a", "most_capable": "a"}, elaboration_chain=["a"])

    def test_elaboration_chain_outside_catalog_rejected(self) -> None:
        with pytest.raises(CatalogConfigError):
            ModelCatalog(
                models=[_model("a")],
                roles={"fastest": "a", "most_capable": "a", "light_general": "a"},
                elaboration_chain=["b"],
            )


class TestFromConfig:
    def test_empty_mapping_gives_default(self) -> None:
        assert ModelCatalog.from_config({}).model_ids == ModelCatalog().model_ids

    def test_yaml_mapping(self) -> None:
        data = {
            "models": [
                {"id": "big", "capability": "high", "speed": "medium", "use_cases": ["complex"]},
                {"id": "small", "capability": "medium", "speed": "very-fast"},
            ],
            "roles": {"fastest": "small", "most_capable": "big", "light_general": "small"},
            "elaboration_chain": ["big"],
        }
        catalog = ModelCatalog.from_config(data)
        assert catalog.model_ids == ("big", "small")
        assert catalog.get("small").speed == Speed.VERY_FAST
        assert catalog.get("big").use_cases == frozenset({"complex"})
        assert catalog.elaboration_chain == ("big",)

    def test_yaml_with_bad_role_fails(self) -> None:
        data = {
            "models": [{"id": "only"}],
            "roles": {"fastest": "only", "most_capable": "missing", "light_general": "only"},
            "elaboration_chain": ["only"],
        }
        with pytest.raises(CatalogConfigError):
            ModelCatalog.from_config(data)


class TestFallbackChain:
    def test_preferred_first_then_catalog_order(self) -> None:
        catalog = make_catalog(("m1", "m2", "m3", "m4"))
        assert catalog.fallback_chain("m3") == ["m3", "m1", "m2", "m4"]

    def test_chain_covers_every_model_once(self) -> None:
        catalog = ModelCatalog()
        chain = catalog.fallback_chain("gemma2-9b-it")
        assert sorted(chain) == sorted(catalog.model_ids)
        assert len(set(chain)) == len(chain)

    def test_unknown_preferred_is_prepended(self) -> None:
        catalog = make_catalog()
        assert catalog.fallback_chain("invalid-model-name") == [
            "invalid-model-name",
            "model-a",
            "model-b",
            "model-c",
        ]


class TestSelectModel:
    @pytest.mark.parametrize(
        "content_type,complexity,interactive,role",
        [
            # rule 1: interactive, not high
            ("educational", Complexity.LOW, True, "fastest"),
            ("technical", Complexity.MEDIUM, True, "fastest"),
            # rule 2: high + technical/code
            ("technical", Complexity.HIGH, True, "most_capable"),
            ("code", Complexity.HIGH, False, "most_capable"),
            # rule 3: medium, not technical
            ("general", Complexity.MEDIUM, False, "light_general"),
            ("code", Complexity.MEDIUM, False, "light_general"),
            # rule 4: everything else
            ("technical", Complexity.MEDIUM, False, "most_capable"),
            ("general", Complexity.HIGH, False, "most_capable"),
            ("general", Complexity.LOW, False, "most_capable"),
        ],
    )
    def test_decision_table(self, content_type: str, complexity: Complexity, interactive: bool, role: str) -> None:
        catalog = make_catalog()
        chosen = catalog.select_model("task", content_type, complexity, interactive)
        assert chosen == getattr(catalog, role)

    def test_accepts_plain_string_complexity(self) -> None:
        catalog = make_catalog()
        assert catalog.select_model("chat", "general", "medium", True) == catalog.fastest

    def test_unknown_complexity_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_catalog().select_model("task", "general", "extreme")

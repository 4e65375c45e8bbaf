"""Unit tests for the agent registry: capability index, discovery and delegation graph."""

from types import SimpleNamespace

import pytest

from agentGrid.agents.registry import AgentRegistry


def _agent(config):
    return SimpleNamespace(type=config.metadata.type, id=config.metadata.id, config=config)


@pytest.fixture
def registry(make_config):
    """scribe -> [rephraser], general -> anyone, rephraser -> nobody."""
    registry = AgentRegistry()
    registry.register(_agent(make_config(
        "rephraser",
        metadata={"capabilities": ["text_rephrasing", "clarity_improvement"]},
        orchestration={"callable": True, "can_delegate": False, "cost_tier": "low"},
    )))
    registry.register(_agent(make_config(
        "scribe",
        metadata={"capabilities": ["writing", "summarizing", "text_refinement"]},
        orchestration={"callable": True, "can_delegate": True, "allowed_delegates": ["rephraser"]},
    )))
    registry.register(_agent(make_config(
        "general",
        metadata={"capabilities": ["planning", "writing"]},
        orchestration={"callable": True, "can_delegate": True},
    )))
    return registry


class TestCapabilityIndex:

    def test_find_by_capabilities_empty_returns_all(self, registry):
        assert registry.find_by_capabilities([]) == {"rephraser", "scribe", "general"}

    def test_single_agent_single_capability(self, make_config):
        registry = AgentRegistry()
        registry.register(_agent(make_config("alpha", metadata={"capabilities": ["x"]})))

        assert registry.find_by_capabilities(["x"]) == {"alpha"}

    def test_intersection(self, registry):
        assert registry.find_by_capabilities(["writing"]) == {"scribe", "general"}
        assert registry.find_by_capabilities(["writing", "planning"]) == {"general"}
        assert registry.find_by_capabilities(["writing", "unknown"]) == set()

    def test_unknown_capability_is_empty(self, registry):
        assert registry.find_by_capability("teleportation") == set()

    def test_reregistration_replaces_capabilities(self, registry, make_config):
        """Re-registering drops capabilities the new config no longer declares."""
        registry.register(_agent(make_config("scribe", metadata={"capabilities": ["poetry"]})))

        assert "scribe" not in registry.find_by_capability("writing")
        assert registry.find_by_capability("poetry") == {"scribe"}
        assert registry.get_metadata("scribe").capabilities == ["poetry"]

    def test_get_all_capabilities_sorted(self, registry):
        capabilities = registry.get_all_capabilities()
        assert capabilities == sorted(capabilities)
        assert "text_rephrasing" in capabilities


class TestLookups:

    def test_misses_return_none(self, registry):
        assert registry.get("missing") is None
        assert registry.get_config("missing") is None
        assert registry.get_metadata("missing") is None
        assert registry.has("missing") is False

    def test_clear(self, registry):
        registry.clear()
        assert registry.get_all_types() == []
        assert registry.find_by_capability("writing") == set()

    def test_config_defaults_to_agent_config(self, registry):
        assert registry.get_config("scribe").orchestration.allowed_delegates == ["rephraser"]


class TestDiscovery:

    def test_exclude_types(self, registry):
        assert registry.discover(capabilities=["writing"], exclude_types=["general"]) == ["scribe"]

    def test_orchestrators_only(self, registry):
        assert set(registry.discover(include_orchestrators=True)) == {"scribe", "general"}

    def test_policy_filter_drops_agents_without_orchestration(self, registry, make_config):
        registry.register(_agent(make_config("plain", metadata={"capabilities": ["writing"]})))

        assert "plain" in registry.discover(capabilities=["writing"])
        assert "plain" not in registry.discover(capabilities=["writing"], include_callable=True)

    def test_callable_false_selects_non_callable(self, registry, make_config):
        registry.register(_agent(make_config(
            "private",
            metadata={"capabilities": ["writing"]},
            orchestration={"callable": False, "can_delegate": False},
        )))

        assert registry.discover(include_callable=False) == ["private"]
        assert "private" not in registry.discover(include_callable=True)

    def test_orchestrators_false_selects_leaf_agents(self, registry):
        assert registry.discover(include_orchestrators=False) == ["rephraser"]
        assert registry.discover(include_callable=True, include_orchestrators=False) == ["rephraser"]

    def test_get_best_agent_prefers_preferred_type(self, registry):
        assert registry.get_best_agent(["writing"], preferred_types=["general"]) == "general"
        assert registry.get_best_agent(["writing"]) == "scribe"
        assert registry.get_best_agent(["teleportation"]) is None

    def test_get_best_agent_ignores_orchestration_policy(self, registry, make_config):
        registry.register(_agent(make_config(
            "private",
            metadata={"capabilities": ["translation"]},
            orchestration={"callable": False},
        )))

        assert registry.get_best_agent(["translation"]) == "private"
        assert registry.get_best_agent(["writing"], exclude_types=["scribe"]) == "general"


class TestDelegationGraph:

    def test_can_call_with_allow_list(self, registry):
        assert registry.can_call("scribe", "rephraser") is True
        assert registry.can_call("scribe", "general") is False

    def test_can_call_without_allow_list(self, registry):
        assert registry.can_call("general", "scribe") is True
        assert registry.can_call("general", "rephraser") is True

    def test_cannot_call_without_can_delegate(self, registry):
        assert registry.can_call("rephraser", "scribe") is False
        assert registry.can_call("missing", "scribe") is False

    def test_empty_allow_list_allows_nobody(self, make_config):
        registry = AgentRegistry()
        registry.register(_agent(make_config("a", orchestration={"can_delegate": True, "allowed_delegates": []})))
        registry.register(_agent(make_config("b")))

        assert registry.can_call("a", "b") is False
        assert registry.get_agent_graph()["a"].can_call == []

    def test_agent_graph(self, registry):
        graph = registry.get_agent_graph()

        assert graph["scribe"].can_call == ["rephraser"]
        assert graph["rephraser"].can_call == []
        assert sorted(graph["rephraser"].can_be_called_by) == ["general", "scribe"]
        assert sorted(graph["general"].can_call) == ["rephraser", "scribe"]
        assert graph["scribe"].can_be_called_by == ["general"]

    def test_graph_skips_unregistered_delegates(self, make_config):
        registry = AgentRegistry()
        registry.register(_agent(make_config(
            "scribe", orchestration={"can_delegate": True, "allowed_delegates": ["rephraser"]},
        )))

        graph = registry.get_agent_graph()
        assert graph["scribe"].can_call == ["rephraser"]
        assert "rephraser" not in graph

    def test_graph_reflects_later_registrations(self, make_config):
        registry = AgentRegistry()
        registry.register(_agent(make_config(
            "scribe", orchestration={"can_delegate": True, "allowed_delegates": ["rephraser"]},
        )))
        registry.register(_agent(make_config("rephraser", orchestration={"can_delegate": False})))

        graph = registry.get_agent_graph()
        assert graph["scribe"].can_call == ["rephraser"]
        assert graph["rephraser"].can_be_called_by == ["scribe"]


def test_catalog_and_stats(registry):
    catalog = registry.get_catalog_text()
    assert catalog.startswith("# Available Agents")
    assert "**scribe**" in catalog

    stats = registry.get_stats()
    assert stats["total_agents"] == 3
    assert stats["orchestrators"] == 2
    assert stats["callable"] == 3

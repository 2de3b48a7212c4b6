"""Tests for ModelRouter decisions and health probing."""

from __future__ import annotations

import httpx
import pytest

from harbinger.core.config import RouteOverride, RouterSettings
from harbinger.core.errors import ConfigError
from harbinger.router.engine import ModelRouter, RoutingContext
from harbinger.router.models import RouteReason, RouterConfig, RouteTarget, Tier

COMPLEX_TASK = "write the exploit for me"


def _client(up: set[str]) -> httpx.AsyncClient:
    """Async client whose health endpoints answer 200 only for hosts in ``up``."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "unreachable":
            raise httpx.ConnectError("refused", request=request)
        port = request.url.port
        if str(port) in up:
            return httpx.Response(200, json={"models": []})
        return httpx.Response(503)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def moderate_task() -> str:
    return "analyze the refactor of this module"


class TestSelectModel:
    @pytest.mark.asyncio
    async def test_user_preference_wins(self):
        router = ModelRouter(http_client=_client(set()))
        decision = await router.select_model(
            COMPLEX_TASK, RoutingContext(preferred_model="gpt-4o", preferred_provider="openai", agent_id="x")
        )
        assert decision.provider == "openai"
        assert decision.model == "gpt-4o"
        assert decision.reason == RouteReason.USER_PREFERENCE
        assert decision.complexity is None

    @pytest.mark.asyncio
    async def test_user_preference_default_provider(self):
        router = ModelRouter(http_client=_client(set()))
        decision = await router.select_model("hi", RoutingContext(preferred_model="claude-opus-4-6"))
        assert decision.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_agent_override(self):
        config = RouterConfig(agent_overrides={"recon": RouteTarget("ollama", "mistral")})
        router = ModelRouter(config, http_client=_client(set()))
        decision = await router.select_model(COMPLEX_TASK, RoutingContext(agent_id="recon"))
        assert (decision.provider, decision.model) == ("ollama", "mistral")
        assert decision.reason == "agent_override"

    @pytest.mark.asyncio
    async def test_route_table_when_primary_up(self):
        router = ModelRouter(http_client=_client({"11434"}))
        decision = await router.select_model("hi")
        assert decision.complexity == Tier.TRIVIAL
        assert (decision.provider, decision.model) == ("ollama", "llama3")
        assert decision.reason == RouteReason.ROUTE_TABLE

    @pytest.mark.asyncio
    async def test_fallback_when_local_primary_down(self, moderate_task: str):
        """Moderate tier: ollama down, remote fallback assumed up."""
        router = ModelRouter(http_client=_client(set()))
        decision = await router.select_model(moderate_task)
        assert decision.complexity == Tier.MODERATE
        assert decision.reason == RouteReason.FALLBACK
        assert decision.provider == "anthropic"
        assert decision.model == "claude-sonnet-4-6"

    @pytest.mark.asyncio
    async def test_last_resort_when_nothing_up(self):
        router = ModelRouter(http_client=_client(set()))
        router.update_route(Tier.TRIVIAL, provider="lmstudio", model="local-model", fallback=("gpt4all", "local-model"))
        decision = await router.select_model("hi")
        assert decision.reason == RouteReason.LAST_RESORT
        assert (decision.provider, decision.model) == ("ollama", "llama3")

    @pytest.mark.asyncio
    async def test_last_resort_without_fallback(self):
        router = ModelRouter(http_client=_client(set()))
        decision = await router.select_model("hi")
        assert decision.reason == RouteReason.LAST_RESORT

    @pytest.mark.asyncio
    async def test_local_only_enforced(self):
        config = RouterConfig(local_only=True)
        router = ModelRouter(config, http_client=_client({"11434"}))
        decision = await router.select_model(COMPLEX_TASK)
        assert decision.complexity == Tier.COMPLEX
        assert decision.reason == RouteReason.LOCAL_MODE_ENFORCED
        assert (decision.provider, decision.model) == ("ollama", "llama3")

    @pytest.mark.asyncio
    async def test_missing_tier_uses_default_fallback(self):
        config = RouterConfig()
        del config.routes[Tier.COMPLEX]
        router = ModelRouter(config, http_client=_client(set()))
        decision = await router.select_model(COMPLEX_TASK)
        assert decision.reason == RouteReason.DEFAULT_FALLBACK
        assert decision.provider == "ollama"

    @pytest.mark.asyncio
    async def test_remote_primary_needs_no_probe(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        router = ModelRouter(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        decision = await router.select_model(COMPLEX_TASK)
        assert decision.reason == RouteReason.ROUTE_TABLE
        assert decision.provider == "anthropic"
        assert calls == []


class TestProviderAvailability:
    @pytest.mark.asyncio
    async def test_unknown_provider_unavailable(self):
        router = ModelRouter(http_client=_client({"11434"}))
        assert await router.is_provider_available("nope") is False

    @pytest.mark.asyncio
    async def test_local_health_paths(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200)

        router = ModelRouter(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        assert await router.is_provider_available("ollama") is True
        assert await router.is_provider_available("lmstudio") is True
        assert seen == ["http://localhost:11434/api/tags", "http://localhost:1234/v1/models"]

    @pytest.mark.asyncio
    async def test_error_status_unavailable(self):
        router = ModelRouter(http_client=_client(set()))
        assert await router.is_provider_available("ollama") is False

    @pytest.mark.asyncio
    async def test_connection_error_unavailable(self):
        router = ModelRouter(http_client=_client(set()))
        router.config.providers["ollama"].base_url = "http://unreachable:11434"
        assert await router.is_provider_available("ollama") is False

    @pytest.mark.asyncio
    async def test_timeout_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        router = ModelRouter(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        assert await router.is_provider_available("ollama") is False


class TestRouteTable:
    def test_get_routes_lists_every_tier(self):
        rows = ModelRouter().get_routes()
        assert [r["tier"] for r in rows] == [t.value for t in Tier]
        moderate = rows[2]
        assert moderate["max_tokens"] == 4000
        assert moderate["fallback_provider"] == "anthropic"
        assert rows[0]["fallback_provider"] is None

    @pytest.mark.asyncio
    async def test_update_route_visible_immediately(self):
        router = ModelRouter(http_client=_client({"11434"}))
        assert router.update_route("trivial", provider="openai", model="gpt-4o-mini") is True
        decision = await router.select_model("hi")
        assert (decision.provider, decision.model) == ("openai", "gpt-4o-mini")

    def test_update_route_rejects_unknown(self):
        router = ModelRouter()
        assert router.update_route("galactic", model="x") is False
        assert router.update_route(Tier.SIMPLE, provider="mystery") is False
        assert router.config.routes[Tier.SIMPLE].provider == "ollama"

    def test_update_route_clears_fallback(self):
        router = ModelRouter()
        assert router.update_route(Tier.MODERATE, fallback=None) is True
        assert router.config.routes[Tier.MODERATE].fallback is None
        assert router.config.routes[Tier.MODERATE].model == "codellama"

    def test_agent_override_management(self):
        router = ModelRouter()
        assert router.set_agent_override("bot", "nowhere", "m") is False
        assert router.set_agent_override("bot", "ollama", "phi3") is True
        assert router.clear_agent_override("bot") is True
        assert router.clear_agent_override("bot") is False


class TestFromSettings:
    def test_overrides_applied(self):
        settings = RouterSettings(
            local_only=True,
            probe_timeout=1.5,
            agent_overrides={"recon": {"provider": "ollama", "model": "mistral"}},
            routes={"simple": RouteOverride(model="phi3", fallback_provider="openai", fallback_model="gpt-4o-mini")},
        )
        config = RouterConfig.from_settings(settings)
        assert config.local_only is True
        assert config.probe_timeout == 1.5
        assert config.agent_overrides["recon"] == RouteTarget("ollama", "mistral")
        assert config.routes[Tier.SIMPLE].model == "phi3"
        assert config.routes[Tier.SIMPLE].provider == "ollama"
        assert config.routes[Tier.SIMPLE].fallback == RouteTarget("openai", "gpt-4o-mini")

    def test_unknown_tier_rejected(self):
        with pytest.raises(ConfigError):
            RouterConfig.from_settings(RouterSettings(routes={"huge": RouteOverride(model="x")}))

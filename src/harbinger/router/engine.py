"""Local-first model routing.

Picks the cheapest sufficient provider/model for each task. Nothing leaves
the machine unless the route table (or the caller) says so.

Decision chain, first match wins:

1. caller preference (``preferred_model`` / ``preferred_provider``)
2. per-agent pinned override
3. complexity tier -> route table, with local-only enforcement,
   a liveness probe on the primary, then on the fallback, then the
   local default as last resort.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from harbinger.core.config import RouterSettings
from harbinger.router.complexity import assess_complexity
from harbinger.router.models import (
    Route,
    RouteDecision,
    RouteReason,
    RouterConfig,
    RouteTarget,
    Tier,
)

logger = logging.getLogger(__name__)

DEFAULT_PREFERRED_PROVIDER = "anthropic"

_UNSET = object()


@dataclass
class RoutingContext:
    """Per-request hints supplied by the caller."""

    preferred_model: str | None = None
    preferred_provider: str | None = None
    agent_id: str | None = None


class ModelRouter:
    """Selects a provider/model for a task."""

    def __init__(
        self,
        config: RouterConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or RouterConfig()
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: RouterSettings, **kwargs) -> ModelRouter:
        return cls(RouterConfig.from_settings(settings), **kwargs)

    async def select_model(self, task, context: RoutingContext | None = None) -> RouteDecision:
        """Select the provider/model that should handle ``task``."""
        context = context or RoutingContext()

        if context.preferred_model:
            return RouteDecision(
                provider=context.preferred_provider or DEFAULT_PREFERRED_PROVIDER,
                model=context.preferred_model,
                reason=RouteReason.USER_PREFERENCE,
            )

        if context.agent_id and context.agent_id in self.config.agent_overrides:
            override = self.config.agent_overrides[context.agent_id]
            return RouteDecision(
                provider=override.provider,
                model=override.model,
                reason=RouteReason.AGENT_OVERRIDE,
            )

        complexity = assess_complexity(task)
        route = self.config.routes.get(complexity)

        if route is None:
            return self._local_default(complexity, RouteReason.DEFAULT_FALLBACK)

        primary = self.config.providers.get(route.provider)
        if self.config.local_only and primary is not None and not primary.is_local:
            return self._local_default(complexity, RouteReason.LOCAL_MODE_ENFORCED)

        if await self.is_provider_available(route.provider):
            return RouteDecision(route.provider, route.model, RouteReason.ROUTE_TABLE, complexity)

        if route.fallback is not None:
            if await self.is_provider_available(route.fallback.provider):
                return RouteDecision(
                    route.fallback.provider,
                    route.fallback.model,
                    RouteReason.FALLBACK,
                    complexity,
                )

        logger.info(
            "No provider reachable for %s tier (primary %s), using local default",
            complexity.value, route.provider,
        )
        return self._local_default(complexity, RouteReason.LAST_RESORT)

    async def is_provider_available(self, name: str) -> bool:
        """Liveness check.

        Local providers get a bounded GET against their status endpoint.
        Remote providers are assumed reachable so that routing never spends
        a paid request on a health check.
        """
        provider = self.config.providers.get(name)
        if provider is None:
            return False
        if not provider.is_local:
            return True

        try:
            if self._http_client is not None:
                response = await self._http_client.get(
                    provider.health_url, timeout=self.config.probe_timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.probe_timeout) as client:
                    response = await client.get(provider.health_url)
        except httpx.HTTPError as e:
            logger.debug("Health probe for %s failed: %s", name, e)
            return False

        return response.is_success

    def get_routes(self) -> list[dict]:
        """Current route table joined with tier budgets."""
        rows = []
        for tier, route in self.config.routes.items():
            budget = self.config.tiers.get(tier)
            rows.append({
                "tier": tier.value,
                "max_tokens": budget.max_tokens if budget else 0,
                "timeout_ms": budget.timeout_ms if budget else 0,
                "description": budget.description if budget else "",
                "provider": route.provider,
                "model": route.model,
                "fallback_provider": route.fallback.provider if route.fallback else None,
                "fallback_model": route.fallback.model if route.fallback else None,
            })
        return rows

    def update_route(
        self,
        tier: Tier | str,
        provider: str | None = None,
        model: str | None = None,
        fallback=_UNSET,
    ) -> bool:
        """Change a tier's route table entry in place.

        ``fallback`` may be a RouteTarget, a (provider, model) pair, or None
        to remove it; omit it to leave the fallback unchanged. Returns False
        for an unknown tier or provider and leaves the table untouched.
        """
        try:
            tier = Tier(tier)
        except ValueError:
            return False
        route: Route | None = self.config.routes.get(tier)
        if route is None:
            return False

        if fallback is not _UNSET and fallback is not None and not isinstance(fallback, RouteTarget):
            fallback = RouteTarget(*fallback)

        for name in (provider, fallback.provider if isinstance(fallback, RouteTarget) else None):
            if name is not None and name not in self.config.providers:
                return False

        if provider is not None:
            route.provider = provider
        if model is not None:
            route.model = model
        if fallback is not _UNSET:
            route.fallback = fallback
        return True

    def set_agent_override(self, agent_id: str, provider: str, model: str) -> bool:
        if provider not in self.config.providers:
            return False
        self.config.agent_overrides[agent_id] = RouteTarget(provider, model)
        return True

    def clear_agent_override(self, agent_id: str) -> bool:
        return self.config.agent_overrides.pop(agent_id, None) is not None

    def _local_default(self, complexity: Tier, reason: RouteReason) -> RouteDecision:
        default = self.config.default
        return RouteDecision(default.provider, default.model, reason, complexity)

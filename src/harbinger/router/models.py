"""Provider, tier and route table models for the model router."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from harbinger.core.config import RouterSettings
from harbinger.core.errors import ConfigError


class ProviderKind(enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Tier(str, enum.Enum):
    TRIVIAL = "trivial"
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    MASSIVE = "massive"


class RouteReason(str, enum.Enum):
    USER_PREFERENCE = "user_preference"
    AGENT_OVERRIDE = "agent_override"
    DEFAULT_FALLBACK = "default_fallback"
    LOCAL_MODE_ENFORCED = "local_mode_enforced"
    ROUTE_TABLE = "route_table"
    FALLBACK = "fallback"
    LAST_RESORT = "last_resort"


@dataclass
class Provider:
    name: str
    kind: ProviderKind
    base_url: str
    models: list[str] = field(default_factory=list)
    health_path: str = "/models"

    @property
    def is_local(self) -> bool:
        return self.kind == ProviderKind.LOCAL

    @property
    def health_url(self) -> str:
        return self.base_url.rstrip("/") + self.health_path


@dataclass(frozen=True)
class TierBudget:
    max_tokens: int
    timeout_ms: int
    description: str = ""


@dataclass
class RouteTarget:
    provider: str
    model: str


@dataclass
class Route:
    """Route table entry: primary provider/model plus an optional fallback."""

    provider: str
    model: str
    fallback: RouteTarget | None = None


@dataclass(frozen=True)
class RouteDecision:
    provider: str
    model: str
    reason: RouteReason
    complexity: Tier | None = None


def default_providers() -> dict[str, Provider]:
    # Local providers first.
    return {
        "ollama": Provider(
            "ollama", ProviderKind.LOCAL, "http://localhost:11434",
            ["llama3", "codellama", "mistral", "phi3"], health_path="/api/tags",
        ),
        "lmstudio": Provider("lmstudio", ProviderKind.LOCAL, "http://localhost:1234/v1", ["local-model"]),
        "gpt4all": Provider("gpt4all", ProviderKind.LOCAL, "http://localhost:4891/v1", ["local-model"]),
        "anthropic": Provider(
            "anthropic", ProviderKind.REMOTE, "https://api.anthropic.com",
            ["claude-opus-4-6", "claude-sonnet-4-6", "claude-haiku-4-5-20251001"],
        ),
        "openai": Provider(
            "openai", ProviderKind.REMOTE, "https://api.openai.com/v1",
            ["gpt-4o", "gpt-4o-mini", "o1"],
        ),
        "google": Provider(
            "google", ProviderKind.REMOTE, "https://generativelanguage.googleapis.com",
            ["gemini-2.0-flash", "gemini-pro"],
        ),
    }


def default_tiers() -> dict[Tier, TierBudget]:
    return {
        Tier.TRIVIAL: TierBudget(500, 1_000, "Greetings, simple lookups"),
        Tier.SIMPLE: TierBudget(2_000, 5_000, "Single-step tasks, short answers"),
        Tier.MODERATE: TierBudget(4_000, 15_000, "Multi-step analysis, code review"),
        Tier.COMPLEX: TierBudget(8_000, 30_000, "Deep reasoning, exploit dev"),
        Tier.MASSIVE: TierBudget(32_000, 60_000, "Full codebase analysis, report gen"),
    }


def default_routes() -> dict[Tier, Route]:
    return {
        Tier.TRIVIAL: Route("ollama", "llama3"),
        Tier.SIMPLE: Route("ollama", "llama3"),
        Tier.MODERATE: Route("ollama", "codellama", RouteTarget("anthropic", "claude-sonnet-4-6")),
        Tier.COMPLEX: Route("anthropic", "claude-sonnet-4-6", RouteTarget("anthropic", "claude-opus-4-6")),
        Tier.MASSIVE: Route("anthropic", "claude-opus-4-6", RouteTarget("anthropic", "claude-opus-4-6")),
    }


@dataclass
class RouterConfig:
    """Everything the router decides from. Owned by one ModelRouter."""

    providers: dict[str, Provider] = field(default_factory=default_providers)
    tiers: dict[Tier, TierBudget] = field(default_factory=default_tiers)
    routes: dict[Tier, Route] = field(default_factory=default_routes)
    agent_overrides: dict[str, RouteTarget] = field(default_factory=dict)
    local_only: bool = False
    probe_timeout: float = 3.0
    default: RouteTarget = field(default_factory=lambda: RouteTarget("ollama", "llama3"))

    @classmethod
    def from_settings(cls, settings: RouterSettings) -> RouterConfig:
        """Build a router configuration from the [router] section of harbinger.toml."""
        config = cls(local_only=settings.local_only, probe_timeout=settings.probe_timeout)

        for agent_id, override in settings.agent_overrides.items():
            config.agent_overrides[agent_id] = RouteTarget(override["provider"], override["model"])

        for tier_name, override in settings.routes.items():
            try:
                tier = Tier(tier_name)
            except ValueError:
                raise ConfigError(f"Unknown tier in [router.routes]: '{tier_name}'") from None
            route = config.routes.get(tier) or Route(config.default.provider, config.default.model)
            if override.provider:
                route.provider = override.provider
            if override.model:
                route.model = override.model
            if override.fallback_provider and override.fallback_model:
                route.fallback = RouteTarget(override.fallback_provider, override.fallback_model)
            config.routes[tier] = route

        return config

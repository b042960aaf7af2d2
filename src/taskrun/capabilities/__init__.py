"""
Capabilities — Named units of external action exposed to the model.

Provides:
- Capability / CapabilityFactory protocols and BaseCapability
- CapabilityRegistry: explicit, freezable catalogue
- resolve_capabilities: per-run resolution of declared names
- Built-ins: echo, clock, http_get
"""

from taskrun.capabilities.base import (
    LIVE_VIEW_KEY,
    SubAction,
    SubActionCallback,
    SubActionEmitter,
    CapabilityResult,
    Capability,
    CapabilityFactory,
    BaseCapability,
)
from taskrun.capabilities.registry import (
    CapabilityRegistry,
    RegistryFrozenError,
    create_registry,
)
from taskrun.capabilities.resolver import (
    ResolverCallbacks,
    UnknownCapabilityError,
    resolve_capabilities,
)
from taskrun.capabilities.builtin import (
    EchoCapability,
    ClockCapability,
    HttpGetCapability,
    HttpGetFactory,
    create_default_registry,
)

__all__ = [
    # Base
    "LIVE_VIEW_KEY",
    "SubAction",
    "SubActionCallback",
    "SubActionEmitter",
    "CapabilityResult",
    "Capability",
    "CapabilityFactory",
    "BaseCapability",
    # Registry
    "CapabilityRegistry",
    "RegistryFrozenError",
    "create_registry",
    # Resolver
    "ResolverCallbacks",
    "UnknownCapabilityError",
    "resolve_capabilities",
    # Built-ins
    "EchoCapability",
    "ClockCapability",
    "HttpGetCapability",
    "HttpGetFactory",
    "create_default_registry",
]

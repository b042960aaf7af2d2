"""
Capability Resolver — Maps a task's declared names to executable capabilities.

Resolution is pure apart from logging: it reads the registry, binds
factories to the run's callbacks and returns a fresh mapping per call.
"""

from dataclasses import dataclass

from taskrun.capabilities.base import Capability, SubActionCallback
from taskrun.capabilities.registry import CapabilityRegistry
from taskrun.observability import MetricsRegistry, get_logger

logger = get_logger("capabilities.resolver")


class UnknownCapabilityError(Exception):
    """Raised in strict mode when declared names are missing from the registry."""

    def __init__(self, names: list[str]):
        super().__init__(f"Unknown capabilities: {', '.join(names)}")
        self.names = names


@dataclass
class ResolverCallbacks:
    """Runtime callbacks that context-bound capabilities close over."""
    on_sub_action: SubActionCallback | None = None


def resolve_capabilities(
    names: list[str] | tuple[str, ...],
    registry: CapabilityRegistry,
    callbacks: ResolverCallbacks | None = None,
    *,
    strict: bool = False,
    metrics: MetricsRegistry | None = None,
) -> dict[str, Capability]:
    """
    Resolve declared capability names for one run.

    Args:
        names: Declared names, in order
        registry: Capability registry to read from
        callbacks: Runtime callbacks injected into factories
        strict: Fail on unknown names instead of skipping them
        metrics: Registry to count skipped names on

    Returns:
        Mapping of name -> capability, in declaration order

    Raises:
        UnknownCapabilityError: strict mode and at least one name is unknown
    """
    on_sub_action = callbacks.on_sub_action if callbacks else None
    resolved: dict[str, Capability] = {}
    unknown: list[str] = []

    for name in names:
        if name in resolved:
            continue

        factory = registry.get_factory(name)
        if factory is not None:
            resolved[name] = factory.bind(on_sub_action)
            continue

        capability = registry.lookup(name)
        if capability is not None:
            resolved[name] = capability
        else:
            unknown.append(name)

    if unknown:
        if strict:
            raise UnknownCapabilityError(unknown)
        for name in unknown:
            logger.warning(f"Unknown capability: {name!r} (skipped)")
        if metrics is not None:
            metrics.unknown_capabilities.inc(len(unknown))

    return resolved

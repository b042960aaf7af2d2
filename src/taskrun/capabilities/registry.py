"""
Capability Registry — Process-wide catalogue of capabilities.

Built once at process start and passed by reference into the
resolver. Static capabilities are shared singletons; factories
produce a fresh instance per run.
"""

from dataclasses import dataclass, field
from typing import Any

from taskrun.capabilities.base import (
    Capability,
    CapabilityFactory,
)


class RegistryFrozenError(Exception):
    """Raised when a frozen registry is written to."""
    pass


@dataclass
class CapabilityRegistry:
    """
    Registry of available capabilities.

    Writes are only allowed before freeze(); afterwards the registry is
    read-only and safe to share between concurrent runs.
    """
    _capabilities: dict[str, Capability] = field(default_factory=dict)
    _factories: dict[str, CapabilityFactory] = field(default_factory=dict)
    _frozen: bool = False

    def register(self, capability: Capability) -> None:
        """Register a static capability."""
        self._check_writable()
        self._factories.pop(capability.name, None)
        self._capabilities[capability.name] = capability

    def register_factory(self, factory: CapabilityFactory) -> None:
        """Register a capability built per run from a callback."""
        self._check_writable()
        self._capabilities.pop(factory.name, None)
        self._factories[factory.name] = factory

    def unregister(self, name: str) -> Capability | CapabilityFactory | None:
        """Unregister and return a capability or factory."""
        self._check_writable()
        return self._capabilities.pop(name, None) or self._factories.pop(name, None)

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, name: str) -> Capability | None:
        """
        Get a capability by name.

        Factories are bound without a callback.
        """
        capability = self._capabilities.get(name)
        if capability is not None:
            return capability
        factory = self._factories.get(name)
        if factory is not None:
            return factory.bind(None)
        return None

    def get_factory(self, name: str) -> CapabilityFactory | None:
        return self._factories.get(name)

    def names(self) -> list[str]:
        """List all capability names, static first."""
        return list(self._capabilities) + list(self._factories)

    def metadata(self) -> list[dict[str, str]]:
        """Name and first description line of every capability."""
        entries: list[Any] = list(self._capabilities.values()) + list(self._factories.values())
        return [
            {
                "name": entry.name,
                "description": (entry.description or "").split("\n")[0].strip(),
            }
            for entry in entries
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._capabilities or name in self._factories

    def __len__(self) -> int:
        return len(self._capabilities) + len(self._factories)

    def _check_writable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Capability registry is frozen")


def create_registry() -> CapabilityRegistry:
    """Factory for an empty capability registry."""
    return CapabilityRegistry()

"""Tool registry built once at startup and frozen before serving."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from toolcore.errors import (
    CapabilityRegistrationError,
    RegistryFrozenError,
    ToolAlreadyRegisteredError,
)
from toolcore.schema import ToolDefinition

logger = logging.getLogger("operable.registry")

CapabilityArea = tuple[str, Callable[["ToolRegistry"], None]]


class ToolRegistry:
    """Maps tool names to their definitions, in registration order."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False

    def register(self, definition: ToolDefinition) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register '{definition.name}': registry is frozen"
            )
        if definition.name in self._tools:
            raise ToolAlreadyRegisteredError(f"Tool '{definition.name}' already registered")
        self._tools[definition.name] = definition
        logger.debug("Registered tool %s", definition.name)

    def freeze(self) -> None:
        self._frozen = True

    def lookup(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def definitions(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.definitions())


def register_capability_areas(registry: ToolRegistry, areas: Iterable[CapabilityArea]) -> ToolRegistry:
    """Run each area's registration function and freeze the registry.

    Every area is attempted even when an earlier one failed, so that all
    broken areas are reported together.  Any failure raises
    ``CapabilityRegistrationError``; a registry with a missing area must not
    be served.
    """
    failures: list[tuple[str, Exception]] = []

    for area_name, register_fn in areas:
        before = len(registry)
        try:
            register_fn(registry)
        except Exception as exc:  # noqa: BLE001
            logger.error("Error registering %s tools: %s", area_name, exc)
            failures.append((area_name, exc))
            continue
        logger.info("Registered %d %s tools", len(registry) - before, area_name)

    if failures:
        error = CapabilityRegistrationError(failures)
        raise error from failures[0][1]

    registry.freeze()
    return registry

"""
Resource registry.

Maps resource names to their specs. Built once at startup and read-only
afterwards; adaptors look resources up by the name in the request path.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from rowgate.contracts.errors import Result
from rowgate.resources import ResourceSpec, named

if TYPE_CHECKING:
    from rowgate.engine import Engine

logger = logging.getLogger(__name__)


class ResourceRegistry:
    """
    Immutable name -> ResourceSpec mapping.

    Accepts either an iterable of named specs or a mapping of name -> spec
    (a ResourceSpec's own name, if set, must agree with its key).
    """

    def __init__(self, specs: Mapping[str, ResourceSpec] | Iterable[ResourceSpec] = ()):
        if isinstance(specs, Mapping):
            entries = [named(spec, name) for name, spec in specs.items()]
        else:
            entries = list(specs)

        resources: dict[str, ResourceSpec] = {}
        for spec in entries:
            spec.validate()
            if spec.name in resources:
                raise ValueError(f"resource {spec.name!r} is registered twice")
            resources[spec.name] = spec

        self._resources = MappingProxyType(resources)
        logger.debug(f"Registered {len(resources)} resources", extra={"resources": sorted(resources)})

    def fetch(self, name: str) -> ResourceSpec | None:
        return self._resources.get(name)

    def fetch_or_raise(self, name: str) -> ResourceSpec:
        spec = self._resources.get(name)
        if spec is None:
            raise KeyError(f"unknown resource: {name}")
        return spec

    def all(self) -> Mapping[str, ResourceSpec]:
        return self._resources

    def names(self) -> list[str]:
        return sorted(self._resources)

    def client(self, name: str, engine: "Engine", store: Any) -> "ResourceClient":
        """Bind a resource to an engine and store for backend use."""
        return ResourceClient(self.fetch_or_raise(name), engine, store)

    def __contains__(self, name: object) -> bool:
        return name in self._resources

    def __iter__(self) -> Iterator[str]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)


class ResourceClient:
    """
    One resource bound to an engine and a store.

    Backend jobs and scripts use it to go through the same policy, triggers
    and broadcasts as API requests, usually with ``system_actor()``.
    """

    def __init__(self, spec: ResourceSpec, engine: "Engine", store: Any):
        self.spec = spec
        self.engine = engine
        self.store = store

    def list(self, actor: Any, params: Mapping[str, Any] | None = None) -> Result:
        return self.engine.list(self.store, self.spec, actor, params)

    def get(self, id: Any, actor: Any, params: Mapping[str, Any] | None = None) -> Result:
        return self.engine.get(self.store, self.spec, actor, id, params)

    def create(self, attrs: Mapping[str, Any], actor: Any) -> Result:
        return self.engine.create(self.store, self.spec, actor, attrs)

    def update(self, id: Any, attrs: Mapping[str, Any], actor: Any) -> Result:
        return self.engine.update(self.store, self.spec, actor, id, attrs)

    def delete(self, id: Any, actor: Any) -> Result:
        return self.engine.delete(self.store, self.spec, actor, id)

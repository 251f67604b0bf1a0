"""Immutable registry of lazily constructed services and factories."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from functools import partial
from typing import Any, Callable, Iterable, Iterator

from .config import RegistrySettings
from .errors import (
    ReentrantRegistrationError,
    ReservedNameError,
    UnknownClass,
    UnknownService,
    UnresolvableDependency,
)
from .providers import (
    FACTORY,
    SERVICE,
    BoundFactory,
    DefaultFactoryCall,
    DefaultMaker,
    FactoryMaker,
    display_name,
    qualify,
    split_qualified,
)
from .recorder import DependencyRecorder
from .store import ProviderFactory, ProviderStore

__all__ = ["Registry", "ProviderState"]

logger = logging.getLogger(__name__)


class ProviderState(str, Enum):
    UNREGISTERED = "unregistered"
    UNINITIALIZED = "uninitialized"
    IN_CONSTRUCTION = "in_construction"
    MEMOIZED = "memoized"


class Registry:
    """Source for services and freshly built objects.

    A service exists once per registry lineage: it is built by its factory
    on the first request and memoized afterwards. Registering returns a new
    registry and leaves the receiver untouched, so a registry can be handed
    to collaborators without them being able to change what it provides.

    Factories receive the registry they are resolved on. Request the
    registry itself via ``registry.service("Src")`` instead of keeping a
    reference to an older one around.
    """

    def __init__(
        self,
        settings: RegistrySettings | None = None,
        *,
        store: ProviderStore | None = None,
        fallback: DefaultMaker | None = None,
    ) -> None:
        self._settings = settings or RegistrySettings()
        self._store = store if store is not None else ProviderStore(max_depth=self._settings.max_layer_depth)
        self._default_factory = fallback
        self._recorder = DependencyRecorder()
        self._constructing: set[str] = set()

    @property
    def settings(self) -> RegistrySettings:
        return self._settings

    @property
    def recorder(self) -> DependencyRecorder:
        """Dependency recording sessions of this registry value."""

        return self._recorder

    # services

    def service(self, name: str, factory: ProviderFactory | None = None) -> Any:
        """Request a service, or register one when ``factory`` is given.

        Requesting returns the (memoized) service; the reserved self-name
        returns the registry itself. Registering returns an updated registry.

        Raises UnknownService, UnresolvableDependency, or ReservedNameError
        when registering under the self-name.
        """

        if factory is None:
            if name == self._settings.self_name:
                return self
            return self._resolve(qualify(SERVICE, name))
        if name == self._settings.self_name:
            raise ReservedNameError(f"the name {name!r} is reserved.")
        return self._register(qualify(SERVICE, name), factory)

    def lazy(self, name: str) -> Callable[[], Any]:
        """Declare a dependency on ``name`` now and resolve it on call."""

        if name != self._settings.self_name:
            self._recorder.record(qualify(SERVICE, name))
        return partial(self.service, name)

    # factories

    def factory(self, name: str, maker: FactoryMaker | None = None) -> Any:
        """Request a factory callable, or register ``maker`` under ``name``.

        The requested callable builds a new object on every call by invoking
        ``maker(registry, *args, **kwargs)``. Unknown names fall back to the
        default factory if one is set, otherwise UnknownClass is raised.
        """

        if maker is None:
            return self._request_factory(name)
        if not callable(maker):
            raise TypeError(f"maker for {name!r} must be callable.")
        return self._register(qualify(FACTORY, name), lambda _: maker)

    def constructor_for(self, name: str, maker: FactoryMaker) -> "Registry":
        """Register ``maker`` as the factory for ``name``; see :meth:`construct`."""

        return self.factory(name, maker)

    def default_factory(self, maker: DefaultMaker) -> "Registry":
        """Return a registry using ``maker(registry, name, args)`` for unknown factories."""

        self._ensure_not_constructing()
        return self._derive(self._store.branch(), maker)

    def construct(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Build a fresh object through the factory registered for ``name``."""

        return self.factory(name)(*args, **kwargs)

    def _request_factory(self, name: str) -> Any:
        qualified = qualify(FACTORY, name)
        try:
            maker = self._resolve(qualified)
        except UnknownService as exc:
            if exc.name != display_name(qualified):
                raise
            if self._default_factory is None:
                raise UnknownClass(name) from None
            return DefaultFactoryCall(name=name, maker=self._default_factory, registry=self)
        return BoundFactory(name=name, maker=maker, registry=self)

    # introspection

    def dependencies_of(self, name: str, kind: str = SERVICE) -> list[str]:
        """Resolve ``name`` and return the providers its construction requested directly."""

        if kind == SERVICE and name == self._settings.self_name:
            return []
        qualified = qualify(kind, name)
        if kind == FACTORY and qualified not in self._store:
            raise UnknownClass(name)
        self._resolve(qualified)
        entry = self._store.lookup(qualified)
        assert entry is not None
        return [display_name(dependency) for dependency in entry.dependencies]

    def state_of(self, name: str, kind: str = SERVICE) -> ProviderState:
        if kind == SERVICE and name == self._settings.self_name:
            # the registry itself is always available
            return ProviderState.MEMOIZED
        qualified = qualify(kind, name)
        entry = self._store.lookup(qualified)
        if entry is None:
            return ProviderState.UNREGISTERED
        if qualified in self._constructing:
            return ProviderState.IN_CONSTRUCTION
        if self._store.is_memoized(qualified):
            return ProviderState.MEMOIZED
        return ProviderState.UNINITIALIZED

    def names(self, kind: str | None = None) -> tuple[str, ...]:
        """List registered providers, optionally limited to one kind."""

        names: list[str] = []
        for qualified in self._store.names():
            entry_kind, _ = split_qualified(qualified)
            if kind is None or entry_kind == kind:
                names.append(display_name(qualified))
        return tuple(names)

    @contextmanager
    def recording(self) -> Iterator[list[str]]:
        """Collect the providers requested directly inside the block.

        The yielded list is filled when the block exits.
        """

        names: list[str] = []
        with self._recorder.recording() as recorded:
            try:
                yield names
            finally:
                names.extend(display_name(dependency) for dependency in self._dedupe(recorded))

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str) or not name:
            return False
        return name == self._settings.self_name or qualify(SERVICE, name) in self._store

    def __repr__(self) -> str:
        services = len(self.names(SERVICE))
        factories = len(self.names(FACTORY))
        return f"<Registry services={services} factories={factories}>"

    # internals

    def _derive(self, store: ProviderStore, fallback: DefaultMaker | None) -> "Registry":
        return Registry(self._settings, store=store, fallback=fallback)

    def _ensure_not_constructing(self) -> None:
        if self._constructing:
            pending = ", ".join(sorted(display_name(name) for name in self._constructing))
            raise ReentrantRegistrationError(
                f"cannot register while constructing {pending}."
            )

    def _register(self, qualified: str, factory: ProviderFactory) -> "Registry":
        if not callable(factory):
            raise TypeError(f"factory for {display_name(qualified)!r} must be callable.")
        self._ensure_not_constructing()
        replaced = qualified in self._store
        store = self._store.insert(qualified, factory)
        logger.debug("%s %s", "re-registered" if replaced else "registered", qualified)
        return self._derive(store, self._default_factory)

    def _resolve(self, qualified: str) -> Any:
        entry = self._store.lookup(qualified)
        if entry is None:
            raise UnknownService(display_name(qualified))

        if self._store.is_memoized(qualified):
            self._recorder.record(qualified)
            return entry.instance

        if qualified in self._constructing:
            raise UnresolvableDependency(display_name(qualified))

        self._constructing.add(qualified)
        token = self._recorder.push()
        try:
            try:
                instance = entry.factory(self)
            finally:
                recorded = self._recorder.pop(token)
        finally:
            self._constructing.discard(qualified)

        dependencies = self._dedupe(recorded)
        self._store.memoize(qualified, instance, dependencies)
        logger.debug("constructed %s (dependencies: %s)", qualified, ", ".join(dependencies) or "none")
        self._recorder.record(qualified)
        return instance

    def _dedupe(self, names: Iterable[str]) -> list[str]:
        if self._settings.dedupe_dependencies:
            return list(dict.fromkeys(names))
        return list(names)

"""Persistent provider store with transitive invalidation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping

if TYPE_CHECKING:
    from .registry import Registry

__all__ = ["MISSING", "ProviderEntry", "ProviderStore", "ProviderFactory"]

logger = logging.getLogger(__name__)

ProviderFactory = Callable[["Registry"], Any]


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(eq=False)
class _Memo:
    """Construction result shared by every store holding the same entry."""

    instance: Any = MISSING
    links: tuple[tuple[str, "ProviderEntry | None"], ...] = ()
    dependents: dict[str, None] = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class ProviderEntry:
    """Record for one qualified provider name.

    Entries are compared by identity. Registering or refreshing a name
    replaces its entry, while branching shares it, together with its memo,
    between stores.
    """

    name: str
    factory: ProviderFactory
    memo: _Memo = field(default_factory=_Memo, repr=False)

    @property
    def instance(self) -> Any:
        return self.memo.instance

    @property
    def is_memoized(self) -> bool:
        return self.memo.instance is not MISSING

    @property
    def dependencies(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.memo.links)

    @property
    def reverse_dependencies(self) -> tuple[str, ...]:
        return tuple(self.memo.dependents)

    def reset(self) -> "ProviderEntry":
        return ProviderEntry(name=self.name, factory=self.factory)


@dataclass(frozen=True)
class _Layer:
    """A frozen slice of entries on top of an older chain."""

    entries: Mapping[str, ProviderEntry]
    parent: "_Layer | None" = None
    depth: int = 1


@dataclass
class ProviderStore:
    """Maps qualified names to entries with copy-on-write branching.

    The store keeps a private, mutable top layer over a chain of frozen
    layers that may be shared with other stores. :meth:`branch` freezes the
    top layer and hands both stores a fresh one, so later registrations on
    either side stay invisible to the other. Entries themselves are shared:
    an instance built through one store is reused by every store that still
    holds the same entry and the same entries for its dependencies.
    """

    max_depth: int = 32
    _base: _Layer | None = None
    _top: dict[str, ProviderEntry] = field(default_factory=dict)

    # lookups

    def lookup(self, name: str) -> ProviderEntry | None:
        entry = self._top.get(name)
        if entry is not None:
            return entry
        layer = self._base
        while layer is not None:
            entry = layer.entries.get(name)
            if entry is not None:
                return entry
            layer = layer.parent
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def names(self) -> tuple[str, ...]:
        seen: dict[str, None] = dict.fromkeys(self._top)
        layer = self._base
        while layer is not None:
            seen.update(dict.fromkeys(layer.entries))
            layer = layer.parent
        return tuple(sorted(seen))

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self.names())

    @property
    def depth(self) -> int:
        return self._base.depth if self._base is not None else 0

    def is_memoized(self, name: str) -> bool:
        """Whether ``name`` has an instance built from this store's providers."""

        entry = self.lookup(name)
        return entry is not None and self._is_current(entry, set())

    def _is_current(self, entry: ProviderEntry, visiting: set[int]) -> bool:
        if not entry.is_memoized:
            return False
        # lazy declarations may link entries in a cycle
        if id(entry) in visiting:
            return True
        visiting.add(id(entry))
        for dependency, linked in entry.memo.links:
            current = self.lookup(dependency)
            if current is not linked:
                return False
            if current is not None and current.is_memoized and not self._is_current(current, visiting):
                return False
        return True

    def reverse_dependencies(self, name: str) -> tuple[str, ...]:
        """Names whose memoized construction recorded this store's entry for ``name``."""

        entry = self.lookup(name)
        if entry is None:
            return ()
        dependents: list[str] = []
        for dependent in entry.memo.dependents:
            candidate = self.lookup(dependent)
            if candidate is None or not candidate.is_memoized:
                continue
            if any(linked is entry for _, linked in candidate.memo.links):
                dependents.append(dependent)
        return tuple(dependents)

    # copy-on-write

    def branch(self) -> "ProviderStore":
        """Return an independent store sharing every current entry."""

        if self._top:
            self._base = _Layer(
                entries=MappingProxyType(self._top),
                parent=self._base,
                depth=self.depth + 1,
            )
            self._top = {}
            if self.depth > self.max_depth:
                self._compact()
        return ProviderStore(max_depth=self.max_depth, _base=self._base)

    def _compact(self) -> None:
        flattened: dict[str, ProviderEntry] = {}
        for name in self.names():
            entry = self.lookup(name)
            assert entry is not None
            flattened[name] = entry
        logger.debug("compacting provider store of depth %s into %s entries", self.depth, len(flattened))
        self._base = _Layer(entries=MappingProxyType(flattened)) if flattened else None

    def insert(self, name: str, factory: ProviderFactory) -> "ProviderStore":
        """Return a new store where ``name`` is provided by ``factory``."""

        store = self.branch()
        if name in store:
            store.refresh(name)
        store._top[name] = ProviderEntry(name=name, factory=factory)
        return store

    # invalidation

    def refresh(self, name: str) -> tuple[str, ...]:
        """Forget the instance of ``name`` and of everything built on it.

        Reverse dependents are refreshed before ``name`` itself. Returns the
        refreshed names in the order they were reset.
        """

        refreshed: list[str] = []
        self._refresh(name, set(), refreshed)
        if len(refreshed) > 1:
            logger.debug("refresh of %s invalidated %s", name, ", ".join(refreshed[:-1]))
        return tuple(refreshed)

    def _refresh(self, name: str, visited: set[str], refreshed: list[str]) -> None:
        if name in visited:
            return
        visited.add(name)
        entry = self.lookup(name)
        if entry is None:
            return
        for dependent in self.reverse_dependencies(name):
            self._refresh(dependent, visited, refreshed)
        self._top[name] = entry.reset()
        refreshed.append(name)

    # memoization

    def memoize(self, name: str, instance: Any, dependencies: Iterable[str]) -> ProviderEntry:
        """Store the constructed instance and link it to its dependencies."""

        entry = self.lookup(name)
        if entry is None:
            raise KeyError(name)
        if entry.is_memoized:
            # built through another store whose providers differ from ours
            entry = entry.reset()
            self._top[name] = entry
        links = tuple((dependency, self.lookup(dependency)) for dependency in dependencies)
        entry.memo.instance = instance
        entry.memo.links = links
        for _, linked in links:
            if linked is not None:
                linked.memo.dependents[name] = None
        return entry

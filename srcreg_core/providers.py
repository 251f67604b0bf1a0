"""Qualified names and the callables handed out for factories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from .registry import Registry

__all__ = [
    "SERVICE",
    "FACTORY",
    "KINDS",
    "BoundFactory",
    "DefaultFactoryCall",
    "FactoryMaker",
    "DefaultMaker",
    "qualify",
    "split_qualified",
    "display_name",
]

SERVICE = "service"
FACTORY = "factory"
KINDS = (SERVICE, FACTORY)
_SEPARATOR = "::"

FactoryMaker = Callable[..., Any]
DefaultMaker = Callable[["Registry", str, list], Any]


def qualify(kind: str, name: str) -> str:
    """Return the ``kind::name`` identifier used inside the store."""

    if kind not in KINDS:
        raise ValueError(f"kind must be one of {', '.join(KINDS)}, got {kind!r}.")
    if not isinstance(name, str) or not name:
        raise ValueError("provider name must be a non-empty string.")
    return f"{kind}{_SEPARATOR}{name}"


def split_qualified(qualified: str) -> tuple[str, str]:
    kind, sep, name = qualified.partition(_SEPARATOR)
    if not sep or kind not in KINDS:
        raise ValueError(f"{qualified!r} is not a qualified provider name.")
    return kind, name


def display_name(qualified: str) -> str:
    """Services show their bare name, factories keep their prefix."""

    kind, name = split_qualified(qualified)
    return name if kind == SERVICE else qualified


@dataclass(frozen=True)
class BoundFactory:
    """Callable produced for a registered factory; builds a fresh value per call."""

    name: str
    maker: FactoryMaker
    registry: "Registry"

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.maker(self.registry, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<BoundFactory {self.name}>"


@dataclass(frozen=True)
class DefaultFactoryCall:
    """Callable that routes an unregistered factory name to the default factory."""

    name: str
    maker: DefaultMaker
    registry: "Registry"

    def __call__(self, *args: Any) -> Any:
        return self.maker(self.registry, self.name, list(args))

    def __repr__(self) -> str:
        return f"<DefaultFactoryCall {self.name}>"

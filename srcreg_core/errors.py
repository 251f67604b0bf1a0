"""Errors raised by the provider registry."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for registry errors."""


class _NamedRegistryError(RegistryError):
    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class UnknownService(_NamedRegistryError, LookupError):
    """Raised when a service name has no registration."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"{name!r} is not registered.")


class UnknownClass(_NamedRegistryError, LookupError):
    """Raised when a factory is requested without registration or default factory."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"no factory registered for {name!r} and no default factory set.")


class UnresolvableDependency(_NamedRegistryError):
    """Raised when a provider transitively requests itself during construction."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"{name!r} depends on itself while being constructed.")


class ReservedNameError(RegistryError, ValueError):
    """Raised when registering under the registry's self-name."""


class ReentrantRegistrationError(RegistryError, RuntimeError):
    """Raised when registering while a provider of the same registry is being constructed."""


class RecordingError(RegistryError, ValueError):
    """Raised on misuse of dependency recording tokens."""

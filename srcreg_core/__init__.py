"""Immutable service and factory registry for untangling global state."""

from .config import RegistrySettings, default_config_path
from .errors import (
    RecordingError,
    RegistryError,
    ReentrantRegistrationError,
    ReservedNameError,
    UnknownClass,
    UnknownService,
    UnresolvableDependency,
)
from .providers import BoundFactory, DefaultFactoryCall
from .recorder import DependencyRecorder
from .registry import ProviderState, Registry
from .store import ProviderEntry, ProviderStore
from .tokens import RecordToken

__all__ = [
    "Registry",
    "ProviderState",
    "RegistrySettings",
    "default_config_path",
    "ProviderEntry",
    "ProviderStore",
    "DependencyRecorder",
    "RecordToken",
    "BoundFactory",
    "DefaultFactoryCall",
    "RegistryError",
    "UnknownService",
    "UnknownClass",
    "UnresolvableDependency",
    "ReservedNameError",
    "ReentrantRegistrationError",
    "RecordingError",
]

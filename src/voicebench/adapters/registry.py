"""Adapter registry mapping provider types to adapter classes.

An AdapterRegistry is built once (usually via with_builtins()) and
handed to the engine. Builtin names resolve to dotted paths that are
imported lazily; names containing a dot are imported as custom adapter
classes (e.g., "my.module.MyAdapter").
"""

from __future__ import annotations

import importlib
from collections.abc import Callable

from voicebench.adapters.base import AdapterOptions, BaseAdapter

AdapterFactory = Callable[[AdapterOptions], BaseAdapter]

# Mapping of builtin adapter short names to their fully-qualified class paths.
BUILTIN_ADAPTERS: dict[str, str] = {
    "openai": "voicebench.adapters.openai_adapter.OpenAIAudioAdapter",
}


def import_adapter_class(dotted_path: str) -> type[BaseAdapter]:
    """Import an adapter class from a fully-qualified dotted path.

    Raises:
        ValueError: If the path is not of the form 'module.ClassName'.
        ImportError: If the module or attribute cannot be found.
        TypeError: If the resolved object is not a BaseAdapter subclass.
    """
    module_path, _, class_name = dotted_path.rpartition(".")
    if not module_path or not class_name:
        raise ValueError(
            f"Invalid adapter path '{dotted_path}'. "
            f"Expected format: 'module.path.ClassName'."
        )

    module = importlib.import_module(module_path)

    try:
        cls = getattr(module, class_name)
    except AttributeError:
        raise ImportError(
            f"Module '{module_path}' has no attribute '{class_name}'."
        ) from None

    if not isinstance(cls, type) or not issubclass(cls, BaseAdapter):
        raise TypeError(
            f"'{dotted_path}' is not a subclass of BaseAdapter. "
            f"Custom adapters must inherit from voicebench.adapters.base.BaseAdapter."
        )

    return cls


class AdapterRegistry:
    """Explicit provider-type -> adapter factory table."""

    def __init__(self, factories: dict[str, AdapterFactory] | None = None) -> None:
        self._factories: dict[str, AdapterFactory] = dict(factories or {})
        self._lazy: dict[str, str] = {}

    @classmethod
    def with_builtins(cls) -> AdapterRegistry:
        """Registry pre-populated with the builtin adapters (imported lazily)."""
        registry = cls()
        for name, dotted_path in BUILTIN_ADAPTERS.items():
            registry.register_path(name, dotted_path)
        return registry

    def register(self, provider_type: str, factory: AdapterFactory) -> None:
        """Register a factory (often the adapter class itself)."""
        self._factories[provider_type] = factory
        self._lazy.pop(provider_type, None)

    def register_path(self, provider_type: str, dotted_path: str) -> None:
        """Register an adapter class by dotted path, imported on first use."""
        self._lazy[provider_type] = dotted_path
        self._factories.pop(provider_type, None)

    def available(self) -> list[str]:
        return sorted({*self._factories, *self._lazy})

    def __contains__(self, provider_type: object) -> bool:
        return provider_type in self._factories or provider_type in self._lazy

    def resolve(self, provider_type: str) -> AdapterFactory:
        """Return the factory for a provider type or dotted class path.

        Raises:
            ValueError: If the name is not registered and has no dots.
            ImportError: If a dotted path cannot be imported.
            TypeError: If a dotted path is not a BaseAdapter subclass.
        """
        if provider_type in self._factories:
            return self._factories[provider_type]

        if provider_type in self._lazy:
            factory = import_adapter_class(self._lazy[provider_type])
            self._factories[provider_type] = factory
            del self._lazy[provider_type]
            return factory

        if "." in provider_type:
            return import_adapter_class(provider_type)

        available = ", ".join(self.available()) or "(none)"
        raise ValueError(
            f"Unknown provider type '{provider_type}'. "
            f"Available adapters: {available}. "
            f"For custom adapters, provide the full dotted path "
            f"(e.g., 'my.module.MyAdapter')."
        )

    def create(self, provider_type: str, options: AdapterOptions) -> BaseAdapter:
        """Build an adapter instance for a provider record."""
        return self.resolve(provider_type)(options)

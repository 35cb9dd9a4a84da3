from typing import Any, Callable, Dict, List, Type, TypeVar

from core.contracts.provider import LLMProvider
from utils.errors import ProviderError

P = TypeVar("P")


class ProviderRegistry:
    """Backend adapters by name. Each adapter module registers itself on import."""

    def __init__(self):
        self._adapters: Dict[str, Type[Any]] = {}

    def register(self, name: str) -> Callable[[Type[P]], Type[P]]:
        """
        Class decorator adding an adapter under `name`.

        Raises:
            ValueError: If another adapter already uses the name.
        """
        def decorator(adapter: Type[P]) -> Type[P]:
            if name in self._adapters:
                raise ValueError(f"Provider '{name}' is already registered by {self._adapters[name].__name__}.")
            self._adapters[name] = adapter
            return adapter
        return decorator

    def names(self) -> List[str]:
        return sorted(self._adapters)

    def adapter_class(self, name: str) -> Type[Any]:
        try:
            return self._adapters[name]
        except KeyError:
            raise ProviderError(f"Unknown provider '{name}'. Available providers: {', '.join(self.names())}") from None

    def build(self, name: str, **options: Any) -> LLMProvider:
        """
        Instantiates the adapter registered under `name`.

        Raises:
            ProviderError: If the name is unknown or the adapter rejects the options.
        """
        adapter = self.adapter_class(name)
        try:
            return adapter(**options)
        except Exception as e:
            raise ProviderError(f"Failed to create provider '{name}': {e}") from e


provider_registry = ProviderRegistry()

"""Dependency injection container.

This module provides a simple DI container without external frameworks.
It allows registering and resolving dependencies for the application.

Design principles:
1. No magic - explicit registration and resolution
2. Testable - easy to swap implementations
3. Lazy loading - adapters instantiated on first use
4. Thread-safe - for web server contexts
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import AppConfig, get_config


@dataclass
class Container:
    """Dependency injection container.

    Usage:
        # Production
        container = Container.create_default()
        resolver = container.resolve(LocationResolverService)

        # Testing
        container = Container()
        container.register(LocationRepositoryPort, lambda: FakeRepository())
        repository = container.resolve(LocationRepositoryPort)

    Attributes:
        config: Application configuration
    """

    config: AppConfig = field(default_factory=get_config)

    _factories: Dict[type[Any], Callable[[], Any]] = field(
        default_factory=dict, repr=False
    )
    _singletons: Dict[type[Any], Any] = field(default_factory=dict, repr=False)
    _singleton_types: set[type[Any]] = field(default_factory=set, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        port_type: type[Any],
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Register a factory for a port type.

        Args:
            port_type: The type (usually a Protocol) to register.
            factory: A callable that creates instances of the type.
            singleton: If True, only one instance is created.
        """
        with self._lock:
            self._factories[port_type] = factory
            if singleton:
                self._singleton_types.add(port_type)

    def resolve(self, port_type: type[Any]) -> Any:
        """Resolve an instance of a port type.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            if port_type not in self._factories:
                raise KeyError(f"Type not registered: {port_type}")

            if port_type in self._singleton_types:
                if port_type not in self._singletons:
                    self._singletons[port_type] = self._factories[port_type]()
                return self._singletons[port_type]

            return self._factories[port_type]()

    def is_registered(self, port_type: type[Any]) -> bool:
        return port_type in self._factories

    def clear_all(self) -> None:
        """Clear all registrations and singletons, closing the resolver."""
        from .services import LocationResolverService

        with self._lock:
            service = self._singletons.get(LocationResolverService)
            if service is not None:
                service.close()
            self._factories.clear()
            self._singletons.clear()
            self._singleton_types.clear()

    @classmethod
    def create_default(cls, config: Optional[AppConfig] = None) -> Container:
        """Create a container with default production bindings.

        The durable tier is a SQL cache when enabled, otherwise a cache that
        always misses.

        Args:
            config: Optional configuration override.

        Returns:
            A configured Container instance.
        """
        from .adapters.cache import InMemoryCache, NullLookupCache, SQLLookupCache
        from .adapters.clock import SystemClock
        from .adapters.locations import CSVLocationRepository
        from .adapters.metrics import InMemoryMetrics
        from .ports.cache import CachePort, LookupCachePort
        from .ports.clock import ClockPort
        from .ports.locations import LocationRepositoryPort
        from .ports.metrics import MetricsPort
        from .services import LocationResolverService

        config = config or get_config()
        container = cls(config=config)

        container.register(
            CachePort,
            lambda: InMemoryCache(
                max_size=config.memory_cache.max_size,
                default_ttl_seconds=config.memory_cache.ttl_seconds,
                name="locations",
            ),
        )

        def create_lookup_cache() -> LookupCachePort:
            if config.durable_cache.enabled:
                return SQLLookupCache(config.durable_cache)
            return NullLookupCache()

        container.register(LookupCachePort, create_lookup_cache)

        container.register(
            LocationRepositoryPort,
            lambda: CSVLocationRepository(config.dataset),
        )
        container.register(MetricsPort, lambda: InMemoryMetrics())
        container.register(ClockPort, lambda: SystemClock())

        # Main service
        def create_location_resolver() -> LocationResolverService:
            return LocationResolverService(
                repository=container.resolve(LocationRepositoryPort),
                memory_cache=container.resolve(CachePort),
                durable_cache=container.resolve(LookupCachePort),
                metrics=container.resolve(MetricsPort),
                clock=container.resolve(ClockPort),
                lookup_config=config.lookup,
                durable_config=config.durable_cache,
            )

        container.register(LocationResolverService, create_location_resolver)

        return container


# Global default container (lazy initialized)
_default_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the default application container.

    Returns:
        The default Container instance (creates one if needed).
    """
    global _default_container
    if _default_container is None:
        with _container_lock:
            if _default_container is None:
                _default_container = Container.create_default()
    return _default_container


def reset_container() -> None:
    """Reset the default container.

    Call this in tests to ensure a fresh container.
    """
    global _default_container
    with _container_lock:
        if _default_container is not None:
            _default_container.clear_all()
        _default_container = None

from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

import structlog

from tmtickets.config import Config
from tmtickets.core.storage import create_backend
from tmtickets.core.storage.base import StorageBackend

if TYPE_CHECKING:
    from tmtickets.core.modules.counter.service import CounterService
    from tmtickets.core.modules.draft.service import DraftService
    from tmtickets.core.modules.reference.service import ReferenceService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with access to the storage backend."""

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    counter: CounterService
    draft: DraftService
    reference: ReferenceService

    def __init__(self, backend: StorageBackend) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("counter", "tmtickets.core.modules.counter.service", "CounterService"),
            ("draft", "tmtickets.core.modules.draft.service", "DraftService"),
            ("reference", "tmtickets.core.modules.reference.service", "ReferenceService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(backend)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, the storage backend, and all service instances.

    The backend (and any client it holds) is created once per process and shared
    by reference; requests carry no state of their own.
    """

    config: Config
    backend: StorageBackend
    services: Services

    def __init__(self, config: Config, backend: StorageBackend | None = None) -> None:
        self.config = config
        self.backend = backend if backend is not None else create_backend(config)
        self.services = Services(self.backend)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.backend.on_start()
        await self.services.start_all()
        logger.info("core_started", backend=self.backend.name)

    async def on_stop(self) -> None:
        """Stop services and release the backend on shutdown."""
        await self.services.stop_all()
        await self.backend.on_stop()

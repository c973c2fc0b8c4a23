"""
Storage Initializer

Picks the storage backend once, at process start:

    UNINITIALIZED -> PROBING_REST -> PROBING_DIRECT -> ACTIVE(backend)

with ACTIVE(memory) as the terminal fallback whenever a probe runs out
of options. A probe is a single read (list expenses) bounded by a
timeout; there are no retries.

DESIGN DECISION: The result lands in a StorageHandle owned by the
application, not in a module-level variable. The handle serves a default
in-memory backend until the initializer activates the resolved one, so
startup never blocks on the network. Requests arriving during probing can
therefore see a different backend from later requests; that window is
accepted.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Optional

import structlog

from expense_tracker.config import DatabaseSettings, SupabaseSettings
from expense_tracker.services.storage.interface import ExpenseStorageInterface
from expense_tracker.services.storage.memory import MemoryStorage
from expense_tracker.services.storage.postgres import PostgresStorage, check_connectivity
from expense_tracker.services.storage.supabase_rest import SupabaseRestStorage


logger = structlog.get_logger(__name__)


class InitializerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PROBING_REST = "probing_rest"
    PROBING_DIRECT = "probing_direct"
    ACTIVE = "active"


class BackendKind(str, Enum):
    MEMORY = "memory"
    REST = "rest"
    DIRECT = "direct"


class StorageHandle:
    """
    The single reference route handlers use to reach storage.

    Starts on a default in-memory backend; activate() swaps in the
    resolved backend exactly once.
    """

    def __init__(
        self,
        backend: Optional[ExpenseStorageInterface] = None,
        kind: BackendKind = BackendKind.MEMORY,
    ):
        self._backend = backend or MemoryStorage()
        self._kind = kind
        self._activated = False

    @property
    def backend(self) -> ExpenseStorageInterface:
        return self._backend

    @property
    def kind(self) -> BackendKind:
        return self._kind

    @property
    def activated(self) -> bool:
        return self._activated

    def activate(self, backend: ExpenseStorageInterface, kind: BackendKind) -> None:
        if self._activated:
            raise RuntimeError("Storage backend already activated")
        self._backend = backend
        self._kind = kind
        self._activated = True

    async def close(self) -> None:
        await self._backend.close()


RestFactory = Callable[[], Optional[ExpenseStorageInterface]]
DirectFactory = Callable[[], ExpenseStorageInterface]
ConnectivityCheck = Callable[[], Awaitable[bool]]


class StorageInitializer:
    """
    Probe-and-fallback backend selection.

    Factories are injectable so the state machine can be exercised
    without a network.
    """

    def __init__(
        self,
        database: DatabaseSettings,
        supabase: SupabaseSettings,
        rest_timeout: float = 5.0,
        direct_timeout: float = 8.0,
        rest_factory: Optional[RestFactory] = None,
        direct_factory: Optional[DirectFactory] = None,
        connectivity_check: Optional[ConnectivityCheck] = None,
    ):
        self._database = database
        self._supabase = supabase
        self._rest_timeout = rest_timeout
        self._direct_timeout = direct_timeout
        self._rest_factory = rest_factory or self._default_rest_factory
        self._direct_factory = direct_factory or self._default_direct_factory
        self._connectivity_check = connectivity_check or self._default_connectivity_check
        self.state = InitializerState.UNINITIALIZED
        self.kind: Optional[BackendKind] = None

    def _default_rest_factory(self) -> Optional[ExpenseStorageInterface]:
        base_url = self._supabase.resolve_url(self._database.url)
        if not base_url or not self._supabase.anon_key:
            logger.info("storage_rest_not_configured")
            return None
        return SupabaseRestStorage(base_url=base_url, api_key=self._supabase.anon_key)

    def _default_direct_factory(self) -> ExpenseStorageInterface:
        return PostgresStorage(
            dsn=self._database.url,
            ssl=self._database.ssl_option,
            min_size=self._database.pool_min_size,
            max_size=self._database.pool_max_size,
        )

    async def _default_connectivity_check(self) -> bool:
        return await check_connectivity(
            self._database.url,
            ssl=self._database.ssl_option,
            timeout=self._direct_timeout,
        )

    async def _probe(
        self,
        backend: ExpenseStorageInterface,
        timeout: float,
        kind: BackendKind,
    ) -> bool:
        selected = False
        try:
            await asyncio.wait_for(backend.get_all_expenses(), timeout=timeout)
            selected = True
        except asyncio.TimeoutError:
            logger.warning("storage_probe_timeout", backend=kind.value, timeout=timeout)
        except Exception as e:
            logger.warning("storage_probe_failed", backend=kind.value, error=str(e))
        finally:
            # Also runs when shutdown cancels the probe
            if not selected:
                await backend.close()
        return selected

    def _activate(self, kind: BackendKind) -> None:
        self.state = InitializerState.ACTIVE
        self.kind = kind
        logger.info("storage_selected", backend=kind.value)

    async def resolve(
        self,
        fallback: Optional[ExpenseStorageInterface] = None,
    ) -> ExpenseStorageInterface:
        """
        Run the probe sequence and return the selected backend.

        Never raises for connectivity problems; the worst case is
        the in-memory backend (fallback, or a fresh MemoryStorage).
        """
        fallback = fallback or MemoryStorage()
        if not self._database.is_postgres:
            logger.info("storage_database_not_configured")
            self._activate(BackendKind.MEMORY)
            return fallback

        logger.info("storage_probing", database=self._database.redacted_url)

        self.state = InitializerState.PROBING_REST
        rest = self._rest_factory()
        if rest is not None and await self._probe(rest, self._rest_timeout, BackendKind.REST):
            self._activate(BackendKind.REST)
            return rest

        self.state = InitializerState.PROBING_DIRECT
        if await self._connectivity_check():
            direct = self._direct_factory()
            if await self._probe(direct, self._direct_timeout, BackendKind.DIRECT):
                self._activate(BackendKind.DIRECT)
                return direct

        logger.warning("storage_fallback_to_memory")
        self._activate(BackendKind.MEMORY)
        return fallback

    async def initialize(self, handle: StorageHandle) -> StorageHandle:
        """
        Resolve the backend and activate it on the handle.

        Falling back to memory keeps the handle's default backend, so
        anything written while probing survives.
        """
        backend = await self.resolve(fallback=handle.backend)
        handle.activate(backend, self.kind)
        return handle

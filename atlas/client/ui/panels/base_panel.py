import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from atlas.client.network_client import NetworkClient
from atlas.client.selection import HolderArbiter, SelectionStore
from atlas.shared.errors import AtlasError
from atlas.shared.events import CountrySelected, SelectionCleared, SelectionEvent


class PanelStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


# (status, data, error message) decided by a surface once a fetch has settled.
Outcome = Tuple[PanelStatus, Any, Optional[str]]


class BasePanel(ABC):
    """
    Abstract base class for the country surfaces.
    Drives the IDLE -> LOADING -> READY | ERRORED lifecycle automatically.

    Architecture Note:
        Panels never talk to each other. They subscribe to the SelectionStore
        and share one HolderArbiter; whichever instance claimed the token last
        owns the visible state. A fetch is checked three times (before the
        request, after the response, right before the state update) and is
        dropped silently at the first failed check.
    """
    def __init__(self, instance_id: str, arbiter: HolderArbiter, client: NetworkClient):
        self.instance_id = instance_id
        self.arbiter = arbiter
        self.client = client

        self.status = PanelStatus.IDLE
        self.code: Optional[str] = None
        self.data: Any = None
        self.error: Optional[str] = None
        self.fetch_count = 0

        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._store: Optional[SelectionStore] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def tag(self) -> str:
        return f"[Panel:{self.instance_id}]"

    # =========================================================================
    # SECTION: SUBSCRIPTION
    # =========================================================================

    def mount(self, store: SelectionStore):
        self._store = store
        self._unsubscribe = store.subscribe(self.on_selection_event)

    def unmount(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.close()
        self._store = None

    def on_selection_event(self, event: SelectionEvent):
        if isinstance(event, CountrySelected):
            self.show(event.code)
        elif isinstance(event, SelectionCleared):
            self.close()

    # =========================================================================
    # SECTION: LIFECYCLE
    # =========================================================================

    def show(self, code: Optional[str]) -> Optional[asyncio.Task]:
        """
        Public entry point. Starts loading 'code' and returns the fetch task,
        or None when there is nothing to do. Must run inside an event loop.
        """
        if not code:
            self.close()
            return None

        already_current = (
            code == self.code
            and self.status in (PanelStatus.READY, PanelStatus.LOADING)
        )
        if already_current:
            return None

        self.arbiter.claim(self.instance_id)
        self._generation += 1
        self.code = code
        self.status = PanelStatus.LOADING
        self.data = None
        self.error = None
        if self._store is not None:
            self._store.set_loading(True)

        self._task = asyncio.get_running_loop().create_task(self._load(code, self._generation))
        return self._task

    def close(self):
        self.arbiter.release(self.instance_id)
        self._generation += 1
        was_loading = self.status is PanelStatus.LOADING
        self.status = PanelStatus.IDLE
        self.code = None
        self.data = None
        self.error = None
        if was_loading and self._store is not None:
            self._store.set_loading(False)

    async def settle(self):
        """Waits for the most recent fetch task, if any."""
        if self._task is not None:
            await self._task

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.arbiter.is_holder(self.instance_id)

    async def _load(self, code: str, generation: int):
        if not self._is_current(generation):
            print(f"{self.tag} Dropping stale request for {code} (pre-fetch)")
            return

        self.fetch_count += 1
        fetched, failure = None, None
        try:
            fetched = await self._fetch(code)
        except AtlasError as e:
            failure = e
        except Exception as e:
            print(f"{self.tag} Unexpected error fetching {code}: {e}")
            failure = e

        if not self._is_current(generation):
            print(f"{self.tag} Dropping stale response for {code} (post-fetch)")
            return

        status, data, error = self._resolve(code, fetched, failure)

        if not self._is_current(generation):
            print(f"{self.tag} Dropping stale result for {code} (pre-update)")
            return

        self.status, self.data, self.error = status, data, error
        if self._store is not None:
            self._store.set_loading(False)
        if error:
            print(f"{self.tag} {code}: {error}")

    # =========================================================================
    # SECTION: VIEW
    # =========================================================================

    def view(self) -> Dict[str, Any]:
        """
        Public template method. A plain snapshot of what the surface shows.
        """
        snapshot: Dict[str, Any] = {
            "status": self.status.value,
            "code": self.code,
            "error": self.error,
        }
        if self.status is PanelStatus.READY:
            snapshot.update(self._view_content())
        return snapshot

    @abstractmethod
    async def _fetch(self, code: str) -> Any:
        """Loads the data for 'code'. Raises AtlasError subclasses on failure."""
        pass

    @abstractmethod
    def _resolve(self, code: str, fetched: Any, failure: Optional[Exception]) -> Outcome:
        """Turns a settled fetch into the next panel state."""
        pass

    @abstractmethod
    def _view_content(self) -> Dict[str, Any]:
        pass

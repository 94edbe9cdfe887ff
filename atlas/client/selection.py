from pathlib import Path
from typing import Callable, List, Optional

import orjson

from atlas.shared.events import CountrySelected, SelectionCleared, SelectionEvent
from atlas.shared.names import Resolution, resolve

SLOT_KEY = "selectedCountryCode"
SYNTHETIC_KEY = "synthetic"

Subscriber = Callable[[SelectionEvent], None]


class HolderArbiter:
    """
    Single-writer arbiter deciding which panel instance may update visible state.

    A panel claims the token the moment it receives a non-null code. Any fetch
    started by an instance that no longer holds the token is discarded at its
    next checkpoint. "Last claim wins", not "last response wins".
    """
    def __init__(self):
        self._holder: Optional[str] = None

    @property
    def holder(self) -> Optional[str]:
        return self._holder

    def claim(self, instance_id: str):
        self._holder = instance_id

    def is_holder(self, instance_id: str) -> bool:
        return self._holder is not None and self._holder == instance_id

    def release(self, instance_id: str):
        """Gives the token up, but only if the caller actually holds it."""
        if self._holder == instance_id:
            self._holder = None


class SelectionSlot:
    """
    Durable key-value slot holding the last selected code, so a restart can
    restore it. The file is absent when nothing is selected. No coordination
    between writers: the last write wins.
    """
    def __init__(self, path: Path):
        self.path = path

    def read(self) -> Optional[Resolution]:
        if not self.path.exists():
            return None
        try:
            data = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            print(f"[SelectionSlot] Ignoring unreadable slot {self.path}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        code = data.get(SLOT_KEY)
        if not isinstance(code, str) or not code:
            return None
        return Resolution(code=code, synthetic=bool(data.get(SYNTHETIC_KEY, False)))

    def write(self, resolution: Resolution):
        # The flag is only stored for synthetic codes.
        data = {SLOT_KEY: resolution.code}
        if resolution.synthetic:
            data[SYNTHETIC_KEY] = True
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps(data))

    def clear(self):
        if self.path.exists():
            self.path.unlink()


class SelectionStore:
    """
    The one canonical emitter of selection changes.

    Map clicks, search results and manual entry call 'select'; every panel
    subscribes and reacts on its own. Also holds the session-wide
    SelectionState: the selected code and a loading flag.
    """
    def __init__(self, slot: Optional[SelectionSlot] = None,
                 resolver: Callable[[str], Resolution] = resolve):
        self.slot = slot
        self.resolver = resolver
        self.selected_code: Optional[str] = None
        self.loading = False
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Registers a listener. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def select(self, raw_name: str) -> CountrySelected:
        return self._apply(raw_name, self.resolver(raw_name))

    def _apply(self, raw_name: str, resolution: Resolution) -> CountrySelected:
        self.selected_code = resolution.code
        if self.slot is not None:
            self.slot.write(resolution)

        kind = "synthetic" if resolution.synthetic else "canonical"
        print(f"[Selection] '{raw_name}' -> {resolution.code} ({kind})")

        event = CountrySelected(raw_name=raw_name, resolution=resolution)
        self._broadcast(event)
        return event

    def clear(self) -> SelectionCleared:
        self.selected_code = None
        self.loading = False
        if self.slot is not None:
            self.slot.clear()

        event = SelectionCleared()
        self._broadcast(event)
        return event

    def restore(self) -> Optional[CountrySelected]:
        """
        Reads the durable slot once at startup and re-broadcasts its code.
        The stored resolution is reused as is: codes are not resolved twice.
        """
        if self.slot is None:
            return None
        resolution = self.slot.read()
        if resolution is None:
            return None
        return self._apply(resolution.code, resolution)

    def set_loading(self, loading: bool):
        self.loading = loading

    def _broadcast(self, event: SelectionEvent):
        # A failing subscriber must not keep the others from hearing the event.
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                print(f"[Selection] Subscriber {callback!r} failed: {e}")

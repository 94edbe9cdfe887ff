from dataclasses import dataclass

from atlas.shared.names import Resolution

@dataclass
class SelectionEvent:
    """
    Base class for all selection notifications.

    Architecture Note:
        There is exactly one emitter (the SelectionStore) and many independent
        subscribers (the panels). Map clicks and search results never talk to a
        panel directly; they ask the store to select, and the store broadcasts.
        A panel can therefore be mounted or removed without the map or the
        search bar knowing anything about it.
    """
    pass

@dataclass
class CountrySelected(SelectionEvent):
    """
    Fired when the user picks a country (map polygon, search result, manual entry).
    Carries the raw display name and how it was resolved to a code.
    """
    raw_name: str
    resolution: Resolution

    @property
    def code(self) -> str:
        return self.resolution.code

@dataclass
class SelectionCleared(SelectionEvent):
    """
    Fired when the selection is explicitly cleared.
    Panels are expected to drop back to Idle.
    """
    pass

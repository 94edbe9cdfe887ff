import orjson

from atlas.client.selection import SLOT_KEY, SYNTHETIC_KEY, HolderArbiter, SelectionSlot, SelectionStore
from atlas.shared.events import CountrySelected, SelectionCleared
from atlas.shared.names import Resolution


def test_select_writes_slot_and_broadcasts(tmp_path):
    slot = SelectionSlot(tmp_path / "selection.json")
    store = SelectionStore(slot)
    received = []
    store.subscribe(received.append)

    event = store.select("United States")

    assert event.code == "usa"
    assert store.selected_code == "usa"
    assert received == [event]
    assert orjson.loads(slot.path.read_bytes()) == {SLOT_KEY: "usa"}


def test_restore_rebroadcasts_stored_code(tmp_path):
    path = tmp_path / "selection.json"
    SelectionStore(SelectionSlot(path)).select("France")

    restarted = SelectionStore(SelectionSlot(path))
    received = []
    restarted.subscribe(received.append)
    event = restarted.restore()

    assert isinstance(event, CountrySelected)
    assert event.code == "fra"
    assert received == [event]


def test_restore_without_slot_is_noop(tmp_path):
    assert SelectionStore(SelectionSlot(tmp_path / "missing.json")).restore() is None
    assert SelectionStore().restore() is None


def test_clear_removes_slot(tmp_path):
    slot = SelectionSlot(tmp_path / "selection.json")
    store = SelectionStore(slot)
    received = []
    store.subscribe(received.append)

    store.select("Atlantis")
    store.clear()

    assert not slot.path.exists()
    assert store.selected_code is None
    assert isinstance(received[-1], SelectionCleared)


def test_unreadable_slot_is_ignored(tmp_path):
    path = tmp_path / "selection.json"
    path.write_text("{not json", encoding="utf-8")
    assert SelectionSlot(path).read() is None


def test_unsubscribe_and_failing_subscriber():
    store = SelectionStore()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    store.subscribe(broken)
    unsubscribe = store.subscribe(received.append)
    store.select("Germany")
    assert [e.code for e in received] == ["deu"]

    unsubscribe()
    store.select("Japan")
    assert len(received) == 1


def test_arbiter_release_only_by_holder():
    arbiter = HolderArbiter()
    arbiter.claim("viewer")
    arbiter.claim("admin")
    assert not arbiter.is_holder("viewer")

    arbiter.release("viewer")
    assert arbiter.holder == "admin"

    arbiter.release("admin")
    assert arbiter.holder is None


def test_restore_keeps_synthetic_code_as_stored(tmp_path):
    path = tmp_path / "selection.json"
    first = SelectionStore(SelectionSlot(path)).select("Prcx")
    assert first.code == "prc"
    assert orjson.loads(path.read_bytes()) == {SLOT_KEY: "prc", SYNTHETIC_KEY: True}

    restarted = SelectionStore(SelectionSlot(path))
    event = restarted.restore()

    assert event.code == "prc"
    assert restarted.selected_code == "prc"
    assert SelectionSlot(path).read() == Resolution(code="prc", synthetic=True)

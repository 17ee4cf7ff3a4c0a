"""Tests de `RegistryStore`: fusión, marcado y copias del snapshot."""
from __future__ import annotations

from svctrack.registry import RegistryStore


def test_merge_stamps_server_fields() -> None:
    store = RegistryStore()
    merged = store.merge({"svc": {"port": 80}}, "10.0.0.1")

    assert merged == ["svc"]
    assert store.snapshot() == {"svc": {"port": 80, "reporterAddress": "10.0.0.1", "available": True}}


def test_merge_is_idempotent() -> None:
    store = RegistryStore()
    report = {"svc": {"port": 80, "tags": ["a"]}}

    store.merge(report, "10.0.0.1")
    once = store.snapshot()
    store.merge(report, "10.0.0.1")

    assert store.snapshot() == once


def test_merge_overwrites_whole_descriptor() -> None:
    store = RegistryStore()
    store.merge({"svc": {"port": 80, "old": True}}, "10.0.0.1")
    store.merge({"svc": {"port": 81}}, "10.0.0.2")

    assert store.get("svc") == {"port": 81, "reporterAddress": "10.0.0.2", "available": True}


def test_merge_does_not_mutate_input() -> None:
    store = RegistryStore()
    descriptor = {"port": 80}
    store.merge({"svc": descriptor}, "10.0.0.1")

    assert descriptor == {"port": 80}


def test_mark_unavailable_keeps_entry() -> None:
    store = RegistryStore()
    store.merge({"svc": {}}, "10.0.0.1")

    assert store.mark_unavailable("svc") is True
    assert "svc" in store
    assert store.get("svc")["available"] is False

    # re-reportar vuelve a marcarlo disponible
    store.merge({"svc": {}}, "10.0.0.1")
    assert store.get("svc")["available"] is True


def test_mark_unavailable_unknown_name_is_noop() -> None:
    store = RegistryStore()
    assert store.mark_unavailable("ghost") is False
    assert len(store) == 0


def test_snapshot_is_a_copy() -> None:
    store = RegistryStore()
    store.merge({"svc": {"port": 80}}, "10.0.0.1")

    snap = store.snapshot()
    snap["svc"]["available"] = False
    snap["other"] = {}

    assert store.get("svc")["available"] is True
    assert "other" not in store


def test_clear() -> None:
    store = RegistryStore()
    store.merge({"a": {}, "b": {}}, None)
    assert len(store) == 2
    store.clear()
    assert store.snapshot() == {}

from __future__ import annotations

import random

import pytest
from conftest import BEACH, FAMILY, FIVE_STARS, SLIDESHOWS, catalog_data, local

from app.viewmodels.creator_vm import SMART_COLLISION_MESSAGE, CreatorVM, EditState, Transition
from core.errors import CatalogWriteError, ConfigurationError, SessionClosedError, ValidationError
from core.models import Location
from infrastructure.json_catalog import JsonCatalog
from infrastructure.preference_store import JsonPreferenceStore

DEFAULT_NAME = "October 19, 2026"


class FakePrompter:
    def __init__(self, replace: bool = True) -> None:
        self.replace = replace
        self.asked: list[str] = []
        self.errors: list[tuple[str, str]] = []

    def confirm_replace(self, name: str) -> bool:
        self.asked.append(name)
        return self.replace

    def show_error(self, title: str, message: str) -> None:
        self.errors.append((title, message))


class FailingCatalog(JsonCatalog):
    def add_photos(self, location, photos) -> None:
        raise CatalogWriteError("disk full")


class BrokenPreferences(JsonPreferenceStore):
    def flush(self) -> None:
        raise OSError("read-only file system")


def _start(catalog, prefs, seed: int = 1) -> CreatorVM:
    return CreatorVM.start(catalog, prefs, DEFAULT_NAME, rng=random.Random(seed))


def _reopen(tmp_path) -> JsonPreferenceStore:
    return JsonPreferenceStore(tmp_path / "preferences.json", namespace="test")


def test_first_session_defaults(catalog, prefs) -> None:
    vm = _start(catalog, prefs)

    assert vm.state is EditState.EDITING
    assert [row.location for row in vm.rows] == [local(FAMILY)]
    assert vm.rows[0].requested_count == 10
    assert vm.destination.location == Location(None, None)
    assert vm.destination.name == DEFAULT_NAME
    assert vm.needs_rebuild


def test_start_without_collections_fails(prefs) -> None:
    with pytest.raises(ConfigurationError):
        _start(JsonCatalog(), prefs)


def test_prepare_view_counts_totals(catalog, prefs) -> None:
    vm = _start(catalog, prefs)

    views = vm.prepare_view()

    assert [v.total_text for v in views] == ["of 15"]
    assert not vm.needs_rebuild
    assert vm.view_generation == 1


def test_structural_edits_request_rebuild(catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.prepare_view()

    assert vm.add_row() is Transition.REFRESH
    assert vm.needs_rebuild
    assert len(vm.rows) == 2

    vm.prepare_view()
    assert vm.remove_row(0) is Transition.REFRESH
    assert vm.needs_rebuild
    assert len(vm.rows) == 1
    with pytest.raises(IndexError):
        vm.remove_row(5)


def test_value_edits_do_not_request_rebuild(catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.prepare_view()

    refresh = vm.set_row_location(0, local(BEACH))
    vm.set_row_count(0, "2.5")
    vm.set_destination_location(local(SLIDESHOWS))
    vm.set_destination_name("  Trip  ")

    assert refresh.location == local(BEACH)
    assert not vm.needs_rebuild
    assert vm.rows[0].requested_count == 2.5
    assert vm.destination.name == "Trip"


def test_value_edits_validate(catalog, prefs) -> None:
    vm = _start(catalog, prefs)

    with pytest.raises(ValidationError):
        vm.set_row_location(0, local(9999))
    with pytest.raises(ValidationError):
        vm.set_row_count(0, "-1")
    with pytest.raises(ValidationError):
        vm.set_destination_location(local(FAMILY))
    with pytest.raises(ValidationError):
        vm.set_destination_name("   ")
    assert vm.destination.name == DEFAULT_NAME


def test_confirm_creates_collection_and_saves(tmp_path, catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.set_row_count(0, 5)
    prompter = FakePrompter()

    assert vm.confirm(prompter) is Transition.CONFIRMED

    created = catalog.find_collection_by_name(Location(None, None), DEFAULT_NAME)
    assert created is not None
    assert catalog.count_photos(created.location) == 5
    assert catalog.active_collection == created.location
    assert vm.state is EditState.CONFIRMED
    assert vm.last_result.photo_count == 5
    assert prompter.asked == [] and prompter.errors == []

    next_vm = _start(catalog, _reopen(tmp_path))
    assert [row.to_entry() for row in next_vm.rows] == [row.to_entry() for row in vm.rows]
    assert next_vm.destination == vm.destination


def test_confirm_overwrite_accepted_replaces_contents(catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.set_row_location(0, local(BEACH))
    vm.set_row_count(0, 3)
    vm.set_destination_name("Family")
    prompter = FakePrompter(replace=True)

    assert vm.confirm(prompter) is Transition.CONFIRMED

    assert prompter.asked == ["Family"]
    ids = {p.photo_id for p in catalog.get_photos(local(FAMILY))}
    assert len(ids) == 3
    assert ids <= set(range(1, 11))
    assert vm.last_result.replaced


def test_confirm_overwrite_declined_keeps_editing(tmp_path, catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.set_destination_name("Family")
    vm.prepare_view()
    before = catalog.to_dict()

    assert vm.confirm(FakePrompter(replace=False)) is Transition.REFRESH

    assert vm.state is EditState.EDITING
    assert vm.needs_rebuild
    assert catalog.to_dict() == before
    assert not (tmp_path / "preferences.json").exists()


def test_confirm_smart_collision_is_rejected(tmp_path, catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.set_destination_name("Five Stars")
    prompter = FakePrompter()
    before = catalog.to_dict()

    assert vm.confirm(prompter) is Transition.REFRESH

    assert prompter.asked == []
    assert prompter.errors == [("Error", SMART_COLLISION_MESSAGE)]
    assert catalog.to_dict() == before
    assert catalog.count_photos(local(FIVE_STARS)) == 2
    assert not (tmp_path / "preferences.json").exists()
    assert vm.state is EditState.EDITING


def test_confirm_commit_failure_rolls_back(tmp_path, prefs) -> None:
    catalog = FailingCatalog(catalog_data())
    vm = _start(catalog, prefs)
    prompter = FakePrompter()

    assert vm.confirm(prompter) is Transition.REFRESH

    assert catalog.find_collection_by_name(Location(None, None), DEFAULT_NAME) is None
    assert prompter.errors == [("Error", "disk full")]
    assert not (tmp_path / "preferences.json").exists()
    assert vm.state is EditState.EDITING
    assert vm.last_result is None


def test_confirm_with_unsaved_preferences_still_confirms(tmp_path, catalog) -> None:
    prefs = BrokenPreferences(tmp_path / "preferences.json", namespace="test")
    vm = _start(catalog, prefs)
    prompter = FakePrompter()

    assert vm.confirm(prompter) is Transition.CONFIRMED

    assert [title for title, _ in prompter.errors] == ["Preferences"]
    assert catalog.find_collection_by_name(Location(None, None), DEFAULT_NAME) is not None


def test_confirm_without_rows_creates_empty_collection(catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.remove_row(0)

    assert vm.confirm(FakePrompter()) is Transition.CONFIRMED
    assert vm.last_result.photo_count == 0


def test_seeded_sessions_sample_the_same_photos(catalog, prefs, tmp_path) -> None:
    other = JsonCatalog(catalog_data())
    other_prefs = JsonPreferenceStore(tmp_path / "other.json", namespace="test")
    for store, store_prefs in ((catalog, prefs), (other, other_prefs)):
        vm = _start(store, store_prefs, seed=7)
        vm.set_row_count(0, 6.5)
        vm.confirm(FakePrompter())

    def picked(store):
        created = store.find_collection_by_name(Location(None, None), DEFAULT_NAME)
        return store.get_photos(created.location)

    assert picked(catalog) == picked(other)


def test_cancel_persists_nothing(tmp_path, catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.add_row()
    vm.set_destination_name("Never")
    before = catalog.to_dict()

    assert vm.cancel() is Transition.CANCELLED

    assert vm.state is EditState.CANCELLED
    assert catalog.to_dict() == before
    assert not (tmp_path / "preferences.json").exists()


def test_actions_after_session_end_are_rejected(catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.confirm(FakePrompter())

    with pytest.raises(SessionClosedError):
        vm.add_row()
    with pytest.raises(SessionClosedError):
        vm.confirm(FakePrompter())
    with pytest.raises(SessionClosedError):
        vm.cancel()


def test_confirm_with_unwritable_catalog_rolls_back(tmp_path, prefs) -> None:
    target = tmp_path / "catalog_dir"
    target.mkdir()
    catalog = JsonCatalog(catalog_data(), path=target)
    vm = _start(catalog, prefs)
    prompter = FakePrompter()

    assert vm.confirm(prompter) is Transition.REFRESH

    assert catalog.find_collection_by_name(Location(None, None), DEFAULT_NAME) is None
    assert [title for title, _ in prompter.errors] == ["Error"]
    assert not (tmp_path / "preferences.json").exists()
    assert vm.state is EditState.EDITING

    # A second attempt plans a fresh collection rather than an overwrite.
    assert vm.confirm(prompter) is Transition.REFRESH
    assert prompter.asked == []


def test_start_drops_infinite_saved_count(tmp_path, catalog) -> None:
    path = tmp_path / "preferences.json"
    path.write_text(
        '{"test": {"destination_location": {"service_id": null, "container_id": null},'
        ' "destination_name": "Picks",'
        f' "source_location_1": {{"service_id": null, "container_id": {BEACH}}},'
        ' "source_count_1": Infinity,'
        f' "source_location_2": {{"service_id": null, "container_id": {FAMILY}}},'
        ' "source_count_2": 3}}',
        encoding="utf-8",
    )

    vm = _start(catalog, JsonPreferenceStore(path, namespace="test"))

    assert [row.to_entry().location for row in vm.rows] == [local(FAMILY)]
    assert vm.destination.name == "Picks"


def test_prepare_view_keeps_known_totals(catalog, prefs) -> None:
    vm = _start(catalog, prefs)
    vm.prepare_view()
    with catalog.write_transaction("Grow"):
        catalog.add_photos(local(FAMILY), catalog.get_photos(local(BEACH)))

    vm.add_row()
    views = vm.prepare_view()

    assert [v.total_text for v in views] == ["of 15", "of 25"]

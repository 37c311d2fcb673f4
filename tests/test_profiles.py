import pytest

from errors import DuplicateNameError, InvalidEntryError, LastProfileError
from profiles import ProfileRegistry, new_profile_id
from schemas import ProfileData


@pytest.fixture
def registry(offline_reconciler):
    registry = ProfileRegistry(offline_reconciler)
    registry.load()
    return registry


def test_new_profile_id_format():
    pid = new_profile_id()
    prefix, millis, suffix = pid.split("_")
    assert prefix == "profile"
    assert millis.isdigit()
    assert len(suffix) == 9


def test_create_gives_default_data(registry, local_store):
    profile = registry.create("  Alex ")
    assert profile.name == "Alex"
    assert registry.get(profile.id) == profile
    assert local_store.profile_data(profile.id) is not None


def test_duplicate_name_is_case_insensitive(registry):
    registry.create("alex")
    with pytest.raises(DuplicateNameError) as exc:
        registry.create("Alex")
    assert exc.value.reason == "duplicate_name"
    assert len(registry.all()) == 1


def test_empty_name_rejected(registry):
    with pytest.raises(InvalidEntryError) as exc:
        registry.create("   ")
    assert exc.value.reason == "empty_name"
    assert registry.all() == []


def test_rename(registry):
    alex = registry.create("Alex")
    sam = registry.create("Sam")
    assert registry.rename(alex.id, "ALEX").name == "ALEX"
    with pytest.raises(DuplicateNameError):
        registry.rename(alex.id, "sam")
    assert registry.get(sam.id).name == "Sam"


def test_delete_last_profile_rejected(registry):
    only = registry.create("Alex")
    with pytest.raises(LastProfileError) as exc:
        registry.delete(only.id)
    assert exc.value.reason == "last_profile"
    assert registry.get(only.id) is not None


def test_switch_unknown_is_noop(registry):
    alex = registry.create("Alex")
    registry.switch_to(alex.id)
    assert registry.switch_to("missing") is None
    assert registry.current_id == alex.id


def test_switch_saves_current_data_first(registry, local_store):
    alex = registry.create("Alex")
    sam = registry.create("Sam")
    registry.switch_to(alex.id)

    registry.switch_to(sam.id, ProfileData(milestones=[1, 3]))

    assert registry.current_id == sam.id
    assert local_store.profile_data(alex.id).milestones == [1, 3]
    assert local_store.current_profile() == sam.id


def test_delete_current_switches_to_first_remaining(registry, local_store):
    alex = registry.create("Alex")
    sam = registry.create("Sam")
    kim = registry.create("Kim")
    registry.switch_to(sam.id)

    data = registry.delete(sam.id)

    assert data is not None
    assert registry.current_id == alex.id
    assert [p.id for p in registry.all()] == [alex.id, kim.id]
    assert sam.id not in local_store.profiles()


def test_delete_other_keeps_current(registry):
    alex = registry.create("Alex")
    sam = registry.create("Sam")
    registry.switch_to(alex.id)
    assert registry.delete(sam.id) is None
    assert registry.current_id == alex.id


def test_load_restores_from_local_store(offline_reconciler):
    first = ProfileRegistry(offline_reconciler)
    alex = first.create("Alex")
    first.switch_to(alex.id)

    second = ProfileRegistry(offline_reconciler)
    second.load()
    assert [p.name for p in second.all()] == ["Alex"]
    assert second.current_id == alex.id


def test_load_drops_dangling_current_pointer(offline_reconciler):
    offline_reconciler.set_current_profile("gone")
    registry = ProfileRegistry(offline_reconciler)
    registry.load()
    assert registry.current_id is None


def test_online_create_uses_server_id(online_reconciler, remote):
    registry = ProfileRegistry(online_reconciler)
    registry.load()
    profile = registry.create("Alex")
    assert remote.get_profile(profile.id).name == "Alex"


def test_online_load_mirrors_remote_profiles(online_reconciler, remote, local_store):
    created = remote.create_profile("Jordan")
    registry = ProfileRegistry(online_reconciler)
    registry.load()
    assert [p.id for p in registry.all()] == [created.id]
    assert local_store.profiles()[created.id]["name"] == "Jordan"

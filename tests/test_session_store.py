import json
import string

from session_store import (
    THEME_KEY,
    USER_KEY,
    LocalStorage,
    SessionStore,
    ThemeMode,
    avatar_url,
)


def test_local_storage_roundtrip(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    storage = LocalStorage(path)
    storage.set_item("a", "1")

    assert LocalStorage(path).get_item("a") == "1"

    storage.remove_item("a")
    assert LocalStorage(path).get_item("a") is None


def test_local_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalStorage(path).get_item("a") is None


def test_no_user_on_first_start(session):
    assert session.user is None
    assert session.load_persisted() is None
    assert not session.is_authenticated


def test_login_persists_user(tmp_path):
    store = SessionStore.from_data_dir(tmp_path)
    user = store.login("ada@example.com", "Ada")

    assert store.is_authenticated
    assert len(user.id) == 9
    assert set(user.id) <= set(string.digits + string.ascii_lowercase)
    assert user.avatar == "https://api.dicebear.com/7.x/adventurer/svg?seed=Ada"

    reloaded = SessionStore.from_data_dir(tmp_path)
    assert reloaded.user == user


def test_login_ids_differ(session):
    first = session.login("a@example.com", "A")
    second = session.login("b@example.com", "B")
    assert first.id != second.id


def test_avatar_url_quotes_name():
    assert avatar_url("Ada Lovelace").endswith("seed=Ada%20Lovelace")


def test_logout_removes_user(tmp_path):
    store = SessionStore.from_data_dir(tmp_path)
    store.login("ada@example.com", "Ada")

    store.logout()

    assert store.user is None
    assert SessionStore.from_data_dir(tmp_path).user is None


def test_unreadable_user_is_ignored(tmp_path):
    (tmp_path / "storage.json").write_text(
        json.dumps({USER_KEY: '{"id": 1}'}), encoding="utf-8"
    )
    assert SessionStore.from_data_dir(tmp_path).user is None


def test_theme_defaults_to_light(session):
    assert session.get_theme() == ThemeMode.LIGHT
    assert not session.is_dark


def test_theme_persists_as_literal(tmp_path):
    store = SessionStore.from_data_dir(tmp_path)
    store.set_theme("dark")

    stored = json.loads((tmp_path / "storage.json").read_text(encoding="utf-8"))
    assert stored[THEME_KEY] == "dark"
    assert SessionStore.from_data_dir(tmp_path).get_theme() == ThemeMode.DARK


def test_toggle_theme(session):
    assert session.toggle_theme() == ThemeMode.DARK
    assert session.toggle_theme() == ThemeMode.LIGHT


def test_unknown_theme_falls_back_to_light(tmp_path):
    (tmp_path / "storage.json").write_text(
        json.dumps({THEME_KEY: "sepia"}), encoding="utf-8"
    )
    assert SessionStore.from_data_dir(tmp_path).get_theme() == ThemeMode.LIGHT


def test_theme_and_user_are_independent(tmp_path):
    store = SessionStore.from_data_dir(tmp_path)
    store.set_theme(ThemeMode.DARK)
    store.login("ada@example.com", "Ada")
    store.logout()

    assert SessionStore.from_data_dir(tmp_path).get_theme() == ThemeMode.DARK

"""
Local session persistence.

`LocalStorage` is a small JSON key/value file that survives restarts.
`SessionStore` sits on top of it and is the single process-wide holder of
the signed-in user and the theme. It reads both at construction and is only
mutated through login/logout and the theme setters.
"""

import json
import random
import string
from enum import Enum
from pathlib import Path
from urllib.parse import quote

from pydantic import ValidationError

from logger import setup_logger
from schemas import User

logger = setup_logger(__name__)

USER_KEY = "user"
THEME_KEY = "theme"
AVATAR_URL = "https://api.dicebear.com/7.x/adventurer/svg?seed={seed}"

_ID_ALPHABET = string.digits + string.ascii_lowercase


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class LocalStorage:
    """String key/value pairs persisted in a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._items: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            items = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt storage file %s", self.path)
            return {}
        if not isinstance(items, dict):
            logger.warning("Ignoring storage file %s with unexpected layout", self.path)
            return {}
        return {str(k): str(v) for k, v in items.items()}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._items, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._write()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._write()


def generate_user_id(length: int = 9) -> str:
    return "".join(random.choices(_ID_ALPHABET, k=length))


def avatar_url(name: str) -> str:
    return AVATAR_URL.format(seed=quote(name))


class SessionStore:
    """Current user and theme, persisted in local storage."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self.user = self.load_persisted()
        self.theme = self._load_theme()

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "SessionStore":
        return cls(LocalStorage(Path(data_dir) / "storage.json"))

    def load_persisted(self) -> User | None:
        """Read the user saved by a previous session, if any."""
        raw = self.storage.get_item(USER_KEY)
        if raw is None:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable persisted user: %s", e)
            return None

    def login(self, email: str, name: str) -> User:
        user = User(
            id=generate_user_id(),
            email=email.strip(),
            name=name.strip(),
            avatar=avatar_url(name.strip()),
        )
        self.storage.set_item(USER_KEY, user.model_dump_json())
        self.user = user
        logger.info("User %s signed in", user.id)
        return user

    def logout(self) -> None:
        if self.user is not None:
            logger.info("User %s signed out", self.user.id)
        self.user = None
        self.storage.remove_item(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def _load_theme(self) -> ThemeMode:
        raw = self.storage.get_item(THEME_KEY)
        try:
            return ThemeMode(raw) if raw else ThemeMode.LIGHT
        except ValueError:
            logger.warning("Unknown theme %r, using light", raw)
            return ThemeMode.LIGHT

    def get_theme(self) -> ThemeMode:
        return self.theme

    def set_theme(self, mode: ThemeMode | str) -> ThemeMode:
        self.theme = ThemeMode(mode)
        self.storage.set_item(THEME_KEY, self.theme.value)
        return self.theme

    def toggle_theme(self) -> ThemeMode:
        if self.theme == ThemeMode.DARK:
            return self.set_theme(ThemeMode.LIGHT)
        return self.set_theme(ThemeMode.DARK)

    @property
    def is_dark(self) -> bool:
        return self.theme == ThemeMode.DARK

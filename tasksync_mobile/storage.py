"""Key-value persistence for the client session.

Tokens go to an encrypted backend on devices. The user profile and the token
timestamp go to a plain backend. On the web both roles fall back to the plain
backend. The platform is inspected once, in ``create_key_value_store``.
"""
import abc
import json
import logging
import os
import re
import time
import typing
from cryptography.fernet import Fernet, InvalidToken
import tasksync_mobile.config

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"
TOKEN_TIMESTAMP_KEY = "tokenTimestamp"

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(abc.ABC):
    @abc.abstractmethod
    async def get(self, key: str) -> typing.Optional[str]:
        ...

    @abc.abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abc.abstractmethod
    async def remove(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    def __init__(self):
        self._values: typing.Dict[str, str] = {}

    async def get(self, key: str) -> typing.Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)


class EncryptedFileStore(KeyValueStore):
    """One Fernet-encrypted file per key inside ``directory``."""

    def __init__(self, directory: str, key: typing.Union[str, bytes]):
        self.directory = directory
        self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        os.makedirs(directory, mode=0o700, exist_ok=True)

    def _path(self, key: str) -> str:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.directory, f"{key}.enc")

    async def get(self, key: str) -> typing.Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None

        with open(path, "rb") as f:
            ciphertext = f.read()

        try:
            return self._fernet.decrypt(ciphertext).decode()
        except InvalidToken:
            logger.error(f"Could not decrypt stored value for {key}, treating it as missing")
            return None

    async def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = f"{path}.tmp"
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(self._fernet.encrypt(value.encode()))
        os.replace(tmp_path, path)

    async def remove(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass


class PlainFileStore(KeyValueStore):
    """All keys in a single JSON document."""

    def __init__(self, directory: str, filename: str = "storage.json"):
        os.makedirs(directory, exist_ok=True)
        self.path = os.path.join(directory, filename)

    def _load(self) -> typing.Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError:
                logger.error(f"Corrupt storage file {self.path}, starting empty")
                return {}

    def _save(self, values: typing.Dict[str, str]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(values, f)
        os.replace(tmp_path, self.path)

    async def get(self, key: str) -> typing.Optional[str]:
        return self._load().get(key)

    async def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._save(values)

    async def remove(self, key: str) -> None:
        values = self._load()
        if key in values:
            del values[key]
            self._save(values)


def create_key_value_store(
    settings: tasksync_mobile.config.ClientSettings
) -> KeyValueStore:
    if settings.platform == "web":
        return PlainFileStore(settings.storage_dir)

    if not settings.storage_encryption_key:
        raise ValueError("storage_encryption_key is required on device")
    return EncryptedFileStore(
        os.path.join(settings.storage_dir, "secure"),
        settings.storage_encryption_key
    )


def create_credential_store(
    settings: tasksync_mobile.config.ClientSettings
) -> "CredentialStore":
    return CredentialStore(
        secure=create_key_value_store(settings),
        plain=PlainFileStore(settings.storage_dir)
    )


class CredentialStore:
    def __init__(self, secure: KeyValueStore, plain: KeyValueStore, clock=time.time):
        self.secure = secure
        self.plain = plain
        self.clock = clock

    async def store_session(
        self,
        access_token: str,
        refresh_token: str,
        user: typing.Dict[str, typing.Any]
    ) -> None:
        await self.secure.set(ACCESS_TOKEN_KEY, access_token)
        await self.secure.set(REFRESH_TOKEN_KEY, refresh_token)
        await self.plain.set(USER_KEY, json.dumps(user))
        await self.plain.set(TOKEN_TIMESTAMP_KEY, str(self.clock()))

    async def store_tokens(self, access_token: str, refresh_token: str) -> None:
        await self.secure.set(ACCESS_TOKEN_KEY, access_token)
        await self.secure.set(REFRESH_TOKEN_KEY, refresh_token)
        await self.plain.set(TOKEN_TIMESTAMP_KEY, str(self.clock()))

    async def get_access_token(self) -> typing.Optional[str]:
        return await self.secure.get(ACCESS_TOKEN_KEY)

    async def get_refresh_token(self) -> typing.Optional[str]:
        return await self.secure.get(REFRESH_TOKEN_KEY)

    async def get_user(self) -> typing.Optional[typing.Dict[str, typing.Any]]:
        raw = await self.plain.get(USER_KEY)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Stored user profile is not valid JSON")
            return None

    async def get_token_timestamp(self) -> typing.Optional[float]:
        raw = await self.plain.get(TOKEN_TIMESTAMP_KEY)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    async def clear(self) -> None:
        await self.secure.remove(ACCESS_TOKEN_KEY)
        await self.secure.remove(REFRESH_TOKEN_KEY)
        await self.plain.remove(USER_KEY)
        await self.plain.remove(TOKEN_TIMESTAMP_KEY)

"""KDE Wallet adapter over the kwalletd D-Bus API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from jeepney import DBusAddress, new_method_call
from jeepney.io.blocking import DBusConnection, open_dbus_connection
from jeepney.wrappers import DBusErrorResponse, unwrap_msg

from gitkwallet.config.settings import DEFAULT_APP_ID
from gitkwallet.wallet.base import WalletError, WalletHandle, WalletService, WalletUnavailableError
from gitkwallet.wallet.qdatastream import decode_string_map, encode_string_map

logger = logging.getLogger(__name__)

KWALLET_INTERFACE = "org.kde.KWallet"
DEFAULT_NETWORK_WALLET = "kdewallet"


def kwallet_address(service: str = "kwalletd5") -> DBusAddress:
    return DBusAddress(
        f"/modules/{service}",
        bus_name=f"org.kde.{service}",
        interface=KWALLET_INTERFACE,
    )


class KWalletHandle(WalletHandle):
    def __init__(self, call: Callable[..., Any], handle: int, app_id: str) -> None:
        self._call = call
        self._handle = handle
        self._app_id = app_id
        self._folder = ""
        self._closed = False

    @property
    def handle(self) -> int:
        return self._handle

    def has_folder(self, folder: str) -> bool:
        return bool(self._call("hasFolder", "iss", self._handle, folder, self._app_id))

    def create_folder(self, folder: str) -> bool:
        return bool(self._call("createFolder", "iss", self._handle, folder, self._app_id))

    def set_folder(self, folder: str) -> bool:
        if folder == self._folder:
            return True
        try:
            exists = self.has_folder(folder)
        except WalletError as exc:
            logger.debug("hasFolder failed: %s", exc)
            return False
        if exists:
            self._folder = folder
        return exists

    def read_map(self, key: str) -> dict[str, str]:
        data = self._call("readMap", "isss", self._handle, self._folder, key, self._app_id)
        return decode_string_map(data)

    def read_password(self, key: str) -> str:
        return str(self._call("readPassword", "isss", self._handle, self._folder, key, self._app_id))

    def write_map(self, key: str, value: dict[str, str]) -> None:
        payload = encode_string_map(value)
        rc = self._call("writeMap", "issays", self._handle, self._folder, key, payload, self._app_id)
        if rc != 0:
            raise WalletError(f"writeMap returned {rc} for '{key}'")

    def write_password(self, key: str, value: str) -> None:
        rc = self._call("writePassword", "issss", self._handle, self._folder, key, value, self._app_id)
        if rc != 0:
            raise WalletError(f"writePassword returned {rc} for '{key}'")

    def remove_entry(self, key: str) -> None:
        rc = self._call("removeEntry", "isss", self._handle, self._folder, key, self._app_id)
        if rc != 0:
            raise WalletError(f"removeEntry returned {rc} for '{key}'")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._call("close", "ibs", self._handle, False, self._app_id)
        except WalletError as exc:
            logger.debug("couldn't close wallet handle %s: %s", self._handle, exc)


class KWalletService(WalletService):
    def __init__(
        self,
        service: str = "kwalletd5",
        app_id: str = DEFAULT_APP_ID,
        timeout_seconds: float = 30.0,
        connection_factory: Optional[Callable[[], DBusConnection]] = None,
    ) -> None:
        self._address = kwallet_address(service)
        self._app_id = app_id
        self._timeout_seconds = timeout_seconds
        self._connection_factory = connection_factory or open_dbus_connection
        self._connection: Optional[DBusConnection] = None

    def _connect(self) -> DBusConnection:
        if self._connection is None:
            try:
                self._connection = self._connection_factory()
            except (OSError, KeyError, ValueError) as exc:
                raise WalletUnavailableError("couldn't connect to the D-Bus session bus") from exc
        return self._connection

    def _call(self, method: str, signature: str, *args: Any) -> Any:
        connection = self._connect()
        message = new_method_call(self._address, method, signature or None, args)
        try:
            reply = connection.send_and_get_reply(message, timeout=self._timeout_seconds)
            body = unwrap_msg(reply)
        except DBusErrorResponse as exc:
            raise WalletError(f"{method} failed: {exc.name}") from exc
        except OSError as exc:
            raise WalletError(f"{method} failed: {exc}") from exc
        return body[0] if body else None

    def folder_exists(self, wallet: str, folder: str) -> bool:
        return not self._call("folderDoesNotExist", "ss", wallet, folder)

    def key_exists(self, wallet: str, folder: str, key: str) -> bool:
        return not self._call("keyDoesNotExist", "sss", wallet, folder, key)

    def open(self, wallet: str) -> KWalletHandle:
        try:
            handle = self._call("open", "sxs", wallet, 0, self._app_id)
        except WalletUnavailableError:
            raise
        except WalletError as exc:
            raise WalletUnavailableError(f"couldn't open wallet '{wallet}'") from exc
        if handle is None or handle < 0:
            raise WalletUnavailableError(f"wallet '{wallet}' refused to open")
        return KWalletHandle(self._call, handle, self._app_id)

    def network_wallet(self) -> str:
        return self._call("networkWallet", "") or DEFAULT_NETWORK_WALLET

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

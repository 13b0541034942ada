from __future__ import annotations

from typing import Optional

import pytest

from gitkwallet.wallet.base import WalletError, WalletHandle, WalletService, WalletUnavailableError
from gitkwallet.wallet.qdatastream import decode_string_map


class FakeWalletHandle(WalletHandle):
    def __init__(self, service: "FakeWalletService", wallet: str) -> None:
        self._service = service
        self._wallet = wallet
        self._folder: Optional[str] = None
        self.closed = False

    @property
    def _folders(self) -> dict[str, dict[str, object]]:
        return self._service.wallets.setdefault(self._wallet, {})

    def _entries(self) -> dict[str, object]:
        assert self._folder is not None, "folder not selected"
        return self._folders[self._folder]

    def has_folder(self, folder: str) -> bool:
        return folder in self._folders

    def create_folder(self, folder: str) -> bool:
        if self._service.refuse_create_folder:
            return False
        self._folders.setdefault(folder, {})
        return True

    def set_folder(self, folder: str) -> bool:
        if folder not in self._folders:
            return False
        self._folder = folder
        return True

    def read_map(self, key: str) -> dict[str, str]:
        value = self._entries().get(key)
        if isinstance(value, bytes):
            return decode_string_map(value)
        if not isinstance(value, dict):
            raise WalletError(f"no map at {key}")
        return dict(value)

    def read_password(self, key: str) -> str:
        value = self._entries().get(key)
        if not isinstance(value, str):
            raise WalletError(f"no password at {key}")
        return value

    def write_map(self, key: str, value: dict[str, str]) -> None:
        self._service.calls.append(("write_map", key))
        if key in self._service.fail_writes:
            raise WalletError(f"write refused: {key}")
        self._entries()[key] = dict(value)

    def write_password(self, key: str, value: str) -> None:
        self._service.calls.append(("write_password", key))
        if key in self._service.fail_writes:
            raise WalletError(f"write refused: {key}")
        self._entries()[key] = value

    def remove_entry(self, key: str) -> None:
        self._service.calls.append(("remove_entry", key))
        if self._entries().pop(key, None) is None:
            raise WalletError(f"no entry at {key}")

    def close(self) -> None:
        self.closed = True


class FakeWalletService(WalletService):
    """In-memory wallet: {wallet: {folder: {key: map-or-password}}}."""

    def __init__(self) -> None:
        self.wallets: dict[str, dict[str, dict[str, object]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.handles: list[FakeWalletHandle] = []
        self.unavailable = False
        self.refuse_create_folder = False
        self.fail_writes: set[str] = set()

    def folder_exists(self, wallet: str, folder: str) -> bool:
        return folder in self.wallets.get(wallet, {})

    def key_exists(self, wallet: str, folder: str, key: str) -> bool:
        return key in self.wallets.get(wallet, {}).get(folder, {})

    def open(self, wallet: str) -> FakeWalletHandle:
        if self.unavailable:
            raise WalletUnavailableError("wallet daemon unavailable")
        handle = FakeWalletHandle(self, wallet)
        self.handles.append(handle)
        return handle

    def network_wallet(self) -> str:
        return "kdewallet"

    def seed(self, wallet: str, folder: str, entries: Optional[dict[str, object]] = None) -> None:
        self.wallets.setdefault(wallet, {}).setdefault(folder, {}).update(entries or {})

    def entries(self, wallet: str, folder: str) -> dict[str, object]:
        return self.wallets.get(wallet, {}).get(folder, {})


@pytest.fixture
def wallet_service() -> FakeWalletService:
    return FakeWalletService()

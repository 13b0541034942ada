"""Wallet service abstractions.

Existence checks are answered by the service without an open wallet; every
read or write goes through a handle obtained from ``open``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Optional


class WalletError(RuntimeError):
    """Raised when a wallet call fails."""


class WalletUnavailableError(WalletError):
    """Raised when the wallet service or a wallet cannot be opened."""


class WalletHandle(ABC):
    """An open wallet. Closed when the ``with`` block exits."""

    @abstractmethod
    def has_folder(self, folder: str) -> bool:
        """Return True when the folder exists in this wallet."""

    @abstractmethod
    def create_folder(self, folder: str) -> bool:
        """Create a folder, returning False when the wallet refuses."""

    @abstractmethod
    def set_folder(self, folder: str) -> bool:
        """Select the folder later entry calls operate on."""

    @abstractmethod
    def read_map(self, key: str) -> dict[str, str]:
        """Return the map stored at key or raise WalletError."""

    @abstractmethod
    def read_password(self, key: str) -> str:
        """Return the password stored at key or raise WalletError."""

    @abstractmethod
    def write_map(self, key: str, value: dict[str, str]) -> None:
        """Store a map at key or raise WalletError."""

    @abstractmethod
    def write_password(self, key: str, value: str) -> None:
        """Store a password at key or raise WalletError."""

    @abstractmethod
    def remove_entry(self, key: str) -> None:
        """Delete the entry at key or raise WalletError."""

    @abstractmethod
    def close(self) -> None:
        """Release the handle. Must not raise."""

    def __enter__(self) -> "WalletHandle":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


class WalletService(ABC):
    """Wallet daemon interface."""

    @abstractmethod
    def folder_exists(self, wallet: str, folder: str) -> bool:
        """Check a folder without opening the wallet."""

    @abstractmethod
    def key_exists(self, wallet: str, folder: str, key: str) -> bool:
        """Check an entry without opening the wallet."""

    @abstractmethod
    def open(self, wallet: str) -> WalletHandle:
        """Open a wallet or raise WalletUnavailableError."""

    @abstractmethod
    def network_wallet(self) -> str:
        """Name of the wallet the daemon uses for network credentials."""

    def close(self) -> None:
        """Release service resources."""

    def __enter__(self) -> "WalletService":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

"""get / store / erase operations against a wallet service.

Each operation is a fixed sequence of guarded steps. A failed guard aborts
the operation: the reason is logged at DEBUG and the caller gets an empty
result. git has no error channel for helpers, so "nothing found" and
"something failed" look the same from stdout.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from gitkwallet.config.settings import WalletSettings
from gitkwallet.core.keys import compose_key_name
from gitkwallet.models.credential import Credential
from gitkwallet.wallet.base import WalletError, WalletHandle, WalletService, WalletUnavailableError
from gitkwallet.wallet.qdatastream import QDataStreamError

_log = logging.getLogger(__name__)

USERNAME_FIELD = "username"


class AbortReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    WALLET_UNAVAILABLE = "WALLET_UNAVAILABLE"
    MALFORMED_STORED_DATA = "MALFORMED_STORED_DATA"
    INPUT_INCOMPLETE = "INPUT_INCOMPLETE"


class OperationAborted(Exception):
    def __init__(self, reason: AbortReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


def _require_key(service: WalletService, settings: WalletSettings, key: str) -> None:
    try:
        exists = service.key_exists(settings.wallet, settings.folder, key)
    except WalletError as exc:
        raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, f"couldn't query wallet: {exc}") from exc
    if not exists:
        raise OperationAborted(AbortReason.NOT_FOUND, "credentials not found")


def _require_folder(service: WalletService, settings: WalletSettings) -> None:
    try:
        exists = service.folder_exists(settings.wallet, settings.folder)
    except WalletError as exc:
        raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, f"couldn't query wallet: {exc}") from exc
    if not exists:
        raise OperationAborted(AbortReason.NOT_FOUND, "no such folder")


def _open(service: WalletService, settings: WalletSettings) -> WalletHandle:
    try:
        return service.open(settings.wallet)
    except WalletUnavailableError as exc:
        raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, "couldn't open wallet") from exc


def _select_folder(wallet: WalletHandle, folder: str) -> None:
    if not wallet.set_folder(folder):
        raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, "couldn't open folder")


def _resolve_username(
    service: WalletService,
    settings: WalletSettings,
    wallet: WalletHandle,
    credential: Credential,
    key: str,
) -> str:
    """Fill in a missing username from the map entry; return the password key.

    A username supplied by the caller is trusted as-is.
    """
    if credential.username:
        return key
    try:
        stored = wallet.read_map(key)
    except QDataStreamError as exc:
        raise OperationAborted(AbortReason.MALFORMED_STORED_DATA, "couldn't decode map") from exc
    except WalletError as exc:
        raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, "couldn't read map") from exc
    if USERNAME_FIELD not in stored:
        raise OperationAborted(AbortReason.MALFORMED_STORED_DATA, "couldn't read username")
    credential.username = stored[USERNAME_FIELD]
    if not credential.username:
        raise OperationAborted(AbortReason.MALFORMED_STORED_DATA, "no username specified")
    key = compose_key_name(credential)
    _require_key(service, settings, key)
    return key


def _get(service: WalletService, credential: Credential, settings: WalletSettings) -> Credential:
    _require_folder(service, settings)
    key = compose_key_name(credential)
    _require_key(service, settings, key)
    with _open(service, settings) as wallet:
        _select_folder(wallet, settings.folder)
        key = _resolve_username(service, settings, wallet, credential, key)
        try:
            credential.password = wallet.read_password(key)
        except WalletError as exc:
            raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, "couldn't read password") from exc
    return credential


def get(
    service: WalletService,
    credential: Credential,
    settings: WalletSettings,
    logger: Optional[logging.Logger] = None,
) -> Credential:
    log = logger or _log
    try:
        return _get(service, credential.model_copy(), settings)
    except OperationAborted as exc:
        log.debug("get: %s [%s]", exc.message, exc.reason.value)
        return Credential()


def _ensure_folder(wallet: WalletHandle, folder: str) -> None:
    try:
        if wallet.has_folder(folder) or wallet.create_folder(folder):
            return
    except WalletError as exc:
        raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, "couldn't create folder") from exc
    raise OperationAborted(AbortReason.WALLET_UNAVAILABLE, "couldn't create folder")


def _store(service: WalletService, credential: Credential, settings: WalletSettings, log: logging.Logger) -> None:
    with _open(service, settings) as wallet:
        _ensure_folder(wallet, settings.folder)
        _select_folder(wallet, settings.folder)
        if not credential.username:
            raise OperationAborted(AbortReason.INPUT_INCOMPLETE, "no username specified")
        if not credential.password:
            raise OperationAborted(AbortReason.INPUT_INCOMPLETE, "no password specified")

        try:
            wallet.write_map(compose_key_name(credential, with_username=False), {USERNAME_FIELD: credential.username})
        except WalletError as exc:
            log.debug("store: couldn't write username: %s", exc)
        try:
            wallet.write_password(compose_key_name(credential), credential.password)
        except WalletError as exc:
            log.debug("store: couldn't write password: %s", exc)


def store(
    service: WalletService,
    credential: Credential,
    settings: WalletSettings,
    logger: Optional[logging.Logger] = None,
) -> None:
    log = logger or _log
    try:
        _store(service, credential.model_copy(), settings, log)
    except OperationAborted as exc:
        log.debug("store: %s [%s]", exc.message, exc.reason.value)


def _erase(service: WalletService, credential: Credential, settings: WalletSettings, log: logging.Logger) -> None:
    _require_folder(service, settings)
    key = compose_key_name(credential)
    _require_key(service, settings, key)
    with _open(service, settings) as wallet:
        _select_folder(wallet, settings.folder)
        key = _resolve_username(service, settings, wallet, credential, key)
        try:
            wallet.remove_entry(compose_key_name(credential, with_username=False))
        except WalletError as exc:
            log.debug("erase: couldn't delete username entry: %s", exc)
        try:
            wallet.remove_entry(key)
        except WalletError as exc:
            log.debug("erase: couldn't delete password entry: %s", exc)


def erase(
    service: WalletService,
    credential: Credential,
    settings: WalletSettings,
    logger: Optional[logging.Logger] = None,
) -> None:
    log = logger or _log
    try:
        _erase(service, credential.model_copy(), settings, log)
    except OperationAborted as exc:
        log.debug("erase: %s [%s]", exc.message, exc.reason.value)

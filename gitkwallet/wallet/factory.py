"""Wallet service factory based on OS."""

from __future__ import annotations

import platform

from gitkwallet.config.settings import HelperSettings
from gitkwallet.wallet.base import WalletError, WalletService
from gitkwallet.wallet.kwallet_store import KWalletService

_KWALLET_SYSTEMS = {"linux", "freebsd", "openbsd", "netbsd", "dragonfly"}


def create_wallet_service(settings: HelperSettings) -> WalletService:
    system = platform.system().lower()
    if system in _KWALLET_SYSTEMS:
        return KWalletService(
            service=settings.service,
            app_id=settings.app_id,
            timeout_seconds=settings.timeout_seconds,
        )
    raise WalletError(
        f"unsupported OS for KWallet access: {platform.system()} "
        "(supported: Linux, BSD)"
    )

"""git-credential-kwallet entrypoint.

Configure git with:

    git config --global credential.helper kwallet
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence, TextIO

from gitkwallet.config.settings import HelperSettings, SettingsLoadError, load_settings
from gitkwallet.core import dispatcher, protocol
from gitkwallet.wallet.base import WalletError, WalletService
from gitkwallet.wallet.factory import create_wallet_service
from gitkwallet.wallet.kwallet_store import DEFAULT_NETWORK_WALLET

logger = logging.getLogger("gitkwallet")

OPERATIONS = ("get", "store", "erase")


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-credential-kwallet",
        description="git credential helper backed by KDE Wallet",
    )
    parser.add_argument("operation", help="get, store or erase (other values are ignored)")
    parser.add_argument("--wallet", help="wallet name (default: the KDE network wallet)")
    parser.add_argument("--folder", help="folder inside the wallet (default: Git)")
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--debug", action="store_true", help="log failure reasons to stderr")
    return parser


def _resolve_wallet(service: WalletService, settings: HelperSettings) -> HelperSettings:
    if settings.wallet.wallet:
        return settings
    try:
        name = service.network_wallet()
    except WalletError as exc:
        logger.debug("couldn't query network wallet, using %s: %s", DEFAULT_NETWORK_WALLET, exc)
        name = DEFAULT_NETWORK_WALLET
    return replace(settings, wallet=replace(settings.wallet, wallet=name))


def run(
    operation: str,
    service: WalletService,
    settings: HelperSettings,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> None:
    if operation not in OPERATIONS:
        logger.debug("ignoring unsupported operation: %s", operation)
        return

    credential = protocol.read(stdin)
    settings = _resolve_wallet(service, settings)
    logger.debug(
        "%s wallet=%s folder=%s protocol=%s host=%s",
        operation,
        settings.wallet.wallet,
        settings.wallet.folder,
        credential.protocol,
        credential.host,
    )

    if operation == "get":
        protocol.write(dispatcher.get(service, credential, settings.wallet, logger=logger), stdout)
    elif operation == "store":
        dispatcher.store(service, credential, settings.wallet, logger=logger)
    else:
        dispatcher.erase(service, credential, settings.wallet, logger=logger)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = load_settings(
            config_path=args.config,
            wallet=args.wallet,
            folder=args.folder,
            debug=args.debug,
        )
    except SettingsLoadError as exc:
        print(f"git-credential-kwallet: invalid settings: {exc}", file=sys.stderr)
        return 2
    _configure_logging(settings.debug)

    try:
        service = create_wallet_service(settings)
    except WalletError as exc:
        logger.error("startup blocked: %s", exc)
        return 2

    with service:
        run(args.operation, service, settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

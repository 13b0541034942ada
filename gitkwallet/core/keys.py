"""Wallet entry key names.

The key format is what existing wallet entries are stored under, so it must
not change: ``protocol://[username@]host/``.
"""

from __future__ import annotations

from gitkwallet.models.credential import Credential


def compose_key_name(credential: Credential, with_username: bool = True) -> str:
    result = ""
    if credential.protocol:
        result += credential.protocol + "://"
    if with_username and credential.username:
        result += credential.username + "@"
    if credential.host:
        result += credential.host + "/"
    return result

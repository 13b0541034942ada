"""Credential record exchanged with git over the helper protocol.

Every field is optional; an empty string means the field is absent.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    model_config = ConfigDict(extra="forbid")

    protocol: str = ""
    host: str = ""
    username: str = ""
    password: str = ""

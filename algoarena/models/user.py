from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    # Accounts are owned by the identity service; this is the local
    # projection the progress service needs to reject unknown user ids.
    id: str
    email: str
    name: str = ""

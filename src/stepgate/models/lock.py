"""Lock record bodies stored in the object store."""

from __future__ import annotations

from pydantic import BaseModel


class LockRecord(BaseModel):
    """Automated lock: the id of the release execution holding it."""

    uuid: str = ""


class UserLockRecord(BaseModel):
    """Manual lock set by an operator; blocks every automated release."""

    user: str = ""
    lock_reason: str = ""

"""Adapters from typed Release handlers to raw payload handlers."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from stepgate.core.exceptions import ValidationError
from stepgate.core.types import JsonDict
from stepgate.models.release import Release

ReleaseHandler = Callable[[Release], Optional[Release]]


def release_task(fn: ReleaseHandler | None = None, *, model: type[Release] = Release):
    """Wrap ``fn(release)`` so it takes and returns JSON payloads.

    The payload is parsed into ``model``; a payload that does not parse
    raises ``ValidationError``. ``fn`` may mutate the release in place and
    return None, or return a replacement release.
    """

    def decorator(func: ReleaseHandler) -> Callable[[Any], JsonDict]:
        @functools.wraps(func)
        def wrapper(payload: Any) -> JsonDict:
            try:
                release = model.model_validate(payload)
            except PydanticValidationError as exc:
                raise ValidationError(f"Release payload could not be parsed: {exc}") from exc

            result = func(release)
            if result is None:
                result = release
            return result.model_dump(mode="json", by_alias=True, exclude_none=True)

        return wrapper

    if fn is not None:
        return decorator(fn)
    return decorator

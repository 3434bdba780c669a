"""Type definitions for claim descriptors."""

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

ClaimSetter = Callable[[Mapping[str, Any], Any], dict[str, Any]]
"""Pure function returning a copy of the payload with one claim set."""


class Claim(BaseModel):
    """A named claim that may be required in a payload."""

    model_config = ConfigDict(frozen=True)

    name: str
    shortname: str
    optional: bool = True

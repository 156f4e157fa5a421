"""Value types delivered by the repositories service."""

from dataclasses import dataclass
from typing import final


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class Repository:
    name: str
    watchers_count: int

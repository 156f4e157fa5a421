"""The repositories list service as seen by the repositories page."""

from abc import ABC, abstractmethod
from typing import Callable, Sequence, TypeAlias

from repobrowser.models import Repository


class FetchError(Exception):
    """The list service could not deliver repositories."""


FetchResult: TypeAlias = Sequence[Repository] | Exception
"""
Either the fetched repositories, in display order, or the failure.

Failures are usually ``FetchError``, but transport errors such as ``OSError``
may be delivered as they are.
"""

Completion: TypeAlias = Callable[[FetchResult], None]


class RepositoriesService(ABC):
    """
    Asynchronously lists the repositories of the configured organization.

    Implementations deliver exactly one result per call by invoking
    ``completion`` on the UI loop. A request cannot be cancelled once started.
    """

    @abstractmethod
    def list(self, completion: Completion, /) -> None: ...

"""Test doubles standing in for the repositories service."""

from collections import deque
from dataclasses import dataclass, field
from typing import final

from typing_extensions import override

from repobrowser.models import Repository
from repobrowser.services import (
    Completion,
    FetchError,
    FetchResult,
    RepositoriesService,
)


@final
@dataclass(kw_only=True, eq=False)
class DeferredRepositoriesService(RepositoriesService):
    """Test utility: holds completions until the test delivers a result."""

    pending: deque[Completion] = field(default_factory=deque)
    request_count: int = 0

    @override
    def list(self, completion: Completion, /) -> None:
        self.request_count += 1
        self.pending.append(completion)

    def deliver(self, result: FetchResult) -> None:
        """Completes the oldest request still in flight."""
        completion = self.pending.popleft()
        completion(result)

    def succeed(self, *repositories: Repository) -> None:
        self.deliver(repositories)

    def fail(self, message: str = "service unavailable") -> None:
        self.deliver(FetchError(message))


CLEANSE = Repository(name="cleanse", watchers_count=42)
OKHTTP = Repository(name="okhttp", watchers_count=1234)
RETROFIT = Repository(name="retrofit", watchers_count=987)

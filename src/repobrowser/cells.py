"""Table cells and the reuse queue that recycles them."""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum


class CellStyle(Enum):
    DEFAULT = "default"
    """A single text label."""
    SUBTITLE = "subtitle"
    """A text label with a detail label below it."""


@dataclass(kw_only=True, slots=True, eq=False)
class TableCell:
    style: CellStyle
    reuse_identifier: str | None
    text: str | None = None
    detail_text: str | None = None
    selectable: bool = True


@dataclass(kw_only=True, slots=True, eq=False)
class CellReuseQueue:
    """
    Cells that scrolled out of view, waiting to be reused.

    Cells are queued by reuse identifier. A cell is only handed back for the
    identifier it was built with, so its style always matches the caller's.
    """

    _queues: defaultdict[str, deque[TableCell]] = field(
        default_factory=lambda: defaultdict(deque), init=False, repr=False
    )

    def enqueue(self, cell: TableCell) -> None:
        if cell.reuse_identifier is None:
            raise ValueError("Only cells with a reuse identifier can be reused")
        self._queues[cell.reuse_identifier].append(cell)

    def dequeue(self, reuse_identifier: str) -> TableCell | None:
        queue = self._queues.get(reuse_identifier)
        if not queue:
            return None
        return queue.popleft()

    def __len__(self) -> int:
        return sum(len(queue) for queue in self._queues.values())

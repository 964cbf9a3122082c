"""
Table allocation: hands out table ids to matches in round-robin order.
"""
from typing import Sequence

from knockout.errors import NoTablesAvailable


def next_table(index: int, tables: Sequence[str]) -> str:
    """Return the table for the ``index``-th allocated match."""
    if not tables:
        raise NoTablesAvailable()
    return tables[index % len(tables)]


class TableAllocator:
    """Round-robin allocator whose counter survives across rounds.

    The tournament stores ``index`` after each round so the next round
    continues where the previous one stopped instead of restarting on the
    first table.
    """

    def __init__(self, tables: Sequence[str], start_index: int = 0):
        if not tables:
            raise NoTablesAvailable()
        self.tables = list(tables)
        self.index = start_index

    def allocate(self) -> str:
        table_id = next_table(self.index, self.tables)
        self.index += 1
        return table_id

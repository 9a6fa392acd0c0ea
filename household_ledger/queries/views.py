"""
View Filter

Projects the ledger onto one viewpoint:
- combined: every primary (master or persona entry), no shadows
- main / partner: every entry, primary or shadow, owned by that persona

Everything that aggregates entries reads them through `filtered()`.
"""

from typing import Iterator, Union

from household_ledger.models.ledger import EntryBase, EntryKind, LedgerEntries, View


def is_visible(entry: EntryBase, view: View) -> bool:
    if view == View.COMBINED:
        return entry.linked_id is None
    return entry.owner.value == view.value


class ViewFilter:
    """View projection over one consistent set of entries."""

    def __init__(self, entries: LedgerEntries):
        self._entries = entries

    def filtered(
        self,
        category: Union[EntryKind, str],
        view: Union[View, str],
    ) -> list[EntryBase]:
        view = View(view)
        return [
            entry for entry in self._entries.of_kind(category)
            if is_visible(entry, view)
        ]

    def visible(self, view: Union[View, str]) -> Iterator[EntryBase]:
        """All visible entries across the four categories."""
        for kind in EntryKind:
            yield from self.filtered(kind, view)

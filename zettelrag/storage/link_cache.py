"""In-memory cache of the links touching each note."""

import threading

from zettelrag.domain.link import Link


class LinkCache:
    """Maps a note ID to the links touching it.

    A stored link is indexed under both of its endpoints as the same object, so
    the directed type survives while either end can find it.

    Contract:
        - `load` populates an entry from a full read of the backing store.
        - `add` and `discard` only touch entries that are already populated, so a
          populated entry always mirrors the store and an absent entry means
          "read the store".
        - Entries never expire. `invalidate` and `clear` are the only evictions.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Link]] = {}
        self._lock = threading.Lock()

    def get(self, note_id: str) -> list[Link] | None:
        """Cached links for a note, or None if the note has not been loaded."""
        with self._lock:
            entry = self._entries.get(note_id)
            return list(entry.values()) if entry is not None else None

    def load(self, note_id: str, links: list[Link]) -> None:
        with self._lock:
            self._entries[note_id] = {link.id: link for link in links}

    def add(self, link: Link) -> None:
        with self._lock:
            for note_id in (link.source_note_id, link.target_note_id):
                entry = self._entries.get(note_id)
                if entry is not None:
                    entry[link.id] = link

    def discard(self, link: Link) -> None:
        with self._lock:
            for note_id in (link.source_note_id, link.target_note_id):
                entry = self._entries.get(note_id)
                if entry is not None:
                    entry.pop(link.id, None)

    def invalidate(self, note_id: str) -> None:
        with self._lock:
            self._entries.pop(note_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cached_links(self) -> list[Link]:
        """Every distinct link held by any entry."""
        with self._lock:
            distinct: dict[str, Link] = {}
            for entry in self._entries.values():
                distinct.update(entry)
            return list(distinct.values())

    def __contains__(self, note_id: str) -> bool:
        with self._lock:
            return note_id in self._entries

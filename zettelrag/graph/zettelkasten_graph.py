"""Graph of notes and links with traversal and connectivity algorithms."""

import threading
from collections import deque
from typing import Iterator

from loguru import logger
from pydantic import BaseModel

from zettelrag.domain.link import Link, LinkType
from zettelrag.domain.note import ZettelNote
from zettelrag.storage.link_store import LinkStore


class GraphStatistics(BaseModel):
    """Summary figures for the graph."""

    note_count: int = 0
    link_count: int = 0
    average_degree: float = 0.0
    max_degree: int = 0
    component_count: int = 0


class ZettelkastenGraph:
    """In-memory graph over notes and the links between them.

    Links are directed and typed, but reachability is undirected: the adjacency
    is keyed by unordered note pairs, so a traversal never misses a note because
    the link was recorded in the other direction. Several links (of different
    types) may join the same pair.

    The graph is a derived view. When a LinkStore is attached, new links are
    persisted there and `rebuild_from_store` reloads the adjacency from it.
    """

    def __init__(self, link_store: LinkStore | None = None) -> None:
        self.link_store = link_store
        self._notes: dict[str, ZettelNote] = {}
        self._adjacency: dict[str, dict[str, None]] = {}
        self._links: dict[frozenset[str], dict[str, Link]] = {}
        self._lock = threading.RLock()

    # Notes

    def add_note(self, note: ZettelNote) -> None:
        """Add a note, or replace the note object with the same ID."""
        with self._lock:
            self._notes[note.id] = note
            self._adjacency.setdefault(note.id, {})

    def get_note(self, note_id: str) -> ZettelNote | None:
        with self._lock:
            return self._notes.get(note_id)

    def has_note(self, note_id: str) -> bool:
        with self._lock:
            return note_id in self._notes

    def all_notes(self) -> list[ZettelNote]:
        with self._lock:
            return list(self._notes.values())

    def remove_note(self, note_id: str) -> None:
        """Remove a note together with every link touching it. Unknown IDs are ignored."""
        with self._lock:
            if note_id not in self._notes:
                return
            for neighbor_id in list(self._adjacency.get(note_id, {})):
                for link in list(self._links.get(frozenset((note_id, neighbor_id)), {}).values()):
                    self.remove_link(link.id)
            del self._notes[note_id]
            self._adjacency.pop(note_id, None)

    # Links

    def add_link(self, link: Link, persist: bool = True) -> None:
        """Add a link between two known notes.

        Args:
            link: The link to add
            persist: Whether to store the link in the attached LinkStore

        Raises:
            KeyError: If either endpoint is not a note in the graph
        """
        with self._lock:
            for note_id in (link.source_note_id, link.target_note_id):
                if note_id not in self._notes:
                    raise KeyError(f"Note {note_id} not found")

            pair = frozenset((link.source_note_id, link.target_note_id))
            if link.id in self._links.get(pair, {}):
                return

            if persist and self.link_store is not None:
                self.link_store.store(link)

            self._links.setdefault(pair, {})[link.id] = link
            self._adjacency[link.source_note_id][link.target_note_id] = None
            self._adjacency[link.target_note_id][link.source_note_id] = None

            self._notes[link.source_note_id].add_outgoing_link(link)
            self._notes[link.target_note_id].add_incoming_link(link)

    def remove_link(self, link_id: str) -> Link | None:
        """Remove a link by ID, from the graph and the attached LinkStore.

        Returns:
            The removed link, or None if no link had this ID
        """
        with self._lock:
            for pair, links in self._links.items():
                if link_id in links:
                    break
            else:
                return None

            link = links.pop(link_id)
            if not links:
                del self._links[pair]
                self._adjacency[link.source_note_id].pop(link.target_note_id, None)
                self._adjacency[link.target_note_id].pop(link.source_note_id, None)

            for note_id in (link.source_note_id, link.target_note_id):
                note = self._notes.get(note_id)
                if note is not None:
                    note.remove_link(link_id)

            if self.link_store is not None:
                self.link_store.delete(link)
            return link

    def links_between(self, first_id: str, second_id: str) -> list[Link]:
        """Links joining two notes, whichever direction they were recorded in."""
        with self._lock:
            return list(self._links.get(frozenset((first_id, second_id)), {}).values())

    def all_links(self) -> list[Link]:
        with self._lock:
            return [link for links in self._links.values() for link in links.values()]

    def rebuild_from_store(self) -> int:
        """Reload the adjacency for every known note from the attached LinkStore.

        Links whose other endpoint is not a known note are skipped.

        Returns:
            Number of links in the graph afterwards
        """
        if self.link_store is None:
            raise ValueError("No link store attached to the graph")

        with self._lock:
            self._links.clear()
            for note_id, note in self._notes.items():
                self._adjacency[note_id] = {}
                note.outgoing_links = []
                note.incoming_links = []

            skipped = 0
            for note_id in list(self._notes):
                for link in self.link_store.links_for(note_id):
                    if link.other_note_id(note_id) in self._notes:
                        self.add_link(link, persist=False)
                    else:
                        skipped += 1

            if skipped:
                logger.info(f"Skipped {skipped} stored links to notes outside the graph")
            return len(self.all_links())

    # Neighbourhood

    def neighbors(self, note_id: str) -> list[ZettelNote]:
        with self._lock:
            return [self._notes[n] for n in self._adjacency.get(note_id, {}) if n in self._notes]

    def neighbors_by_link_type(self, note_id: str, link_type: LinkType) -> list[ZettelNote]:
        """Notes reached from `note_id` through outgoing links of one type."""
        with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                return []
            return [
                self._notes[target_id]
                for target_id in dict.fromkeys(note.related_note_ids(link_type))
                if target_id in self._notes
            ]

    def traverse(self, start_id: str, max_hops: int) -> list[ZettelNote]:
        """Breadth-first expansion from a note.

        Args:
            start_id: Note to start from, not included in the result
            max_hops: Maximum number of links to follow

        Returns:
            Notes within `max_hops`, nearest first, each at most once
        """
        return [note for note, _ in self.traverse_with_depth(start_id, max_hops)]

    def traverse_with_depth(self, start_id: str, max_hops: int) -> list[tuple[ZettelNote, int]]:
        """Like `traverse`, but also returns the hop distance of each note."""
        with self._lock:
            if start_id not in self._notes or max_hops <= 0:
                return []

            visited = {start_id}
            reached: list[tuple[ZettelNote, int]] = []
            queue = deque([(start_id, 0)])

            while queue:
                current_id, depth = queue.popleft()
                if depth >= max_hops:
                    continue
                for neighbor_id in self._adjacency.get(current_id, {}):
                    if neighbor_id in visited:
                        continue
                    visited.add(neighbor_id)
                    reached.append((self._notes[neighbor_id], depth + 1))
                    queue.append((neighbor_id, depth + 1))

            return reached

    def traverse_depth_first(self, start_id: str, max_depth: int) -> list[ZettelNote]:
        """Depth-first expansion from a note, following each branch before the next.

        A note is returned at most once, at the first point it is reached within
        `max_depth` links. The start note is not included.
        """
        with self._lock:
            if start_id not in self._notes or max_depth <= 0:
                return []

            visited = {start_id}
            reached: list[ZettelNote] = []
            stack = [(neighbor_id, 1) for neighbor_id in reversed(self._adjacency.get(start_id, {}))]

            while stack:
                current_id, depth = stack.pop()
                if current_id in visited:
                    continue
                visited.add(current_id)
                reached.append(self._notes[current_id])
                if depth < max_depth:
                    for neighbor_id in reversed(self._adjacency.get(current_id, {})):
                        if neighbor_id not in visited:
                            stack.append((neighbor_id, depth + 1))

            return reached

    def shortest_path(self, start_id: str, end_id: str) -> list[ZettelNote]:
        """Find the shortest path between two notes.

        Returns:
            Notes along the path including both ends, `[start]` if they are the
            same note, or an empty list if either is unknown or unreachable
        """
        with self._lock:
            if start_id not in self._notes or end_id not in self._notes:
                return []
            if start_id == end_id:
                return [self._notes[start_id]]

            parents: dict[str, str | None] = {start_id: None}
            queue = deque([start_id])

            while queue:
                current_id = queue.popleft()
                for neighbor_id in self._adjacency.get(current_id, {}):
                    if neighbor_id in parents:
                        continue
                    parents[neighbor_id] = current_id
                    if neighbor_id == end_id:
                        return self._reconstruct_path(parents, end_id)
                    queue.append(neighbor_id)

            return []

    def _reconstruct_path(self, parents: dict[str, str | None], end_id: str) -> list[ZettelNote]:
        path: list[ZettelNote] = []
        current: str | None = end_id
        while current is not None:
            path.append(self._notes[current])
            current = parents[current]
        path.reverse()
        return path

    def find_all_paths(self, start_id: str, end_id: str, max_paths: int = 10) -> list[list[ZettelNote]]:
        """Find up to `max_paths` simple paths between two notes, depth first."""
        with self._lock:
            if start_id not in self._notes or end_id not in self._notes or max_paths <= 0:
                return []

            paths: list[list[ZettelNote]] = []
            current_path: list[str] = []
            on_path: set[str] = set()

            def explore(note_id: str) -> None:
                if len(paths) >= max_paths:
                    return
                current_path.append(note_id)
                on_path.add(note_id)
                if note_id == end_id:
                    paths.append([self._notes[n] for n in current_path])
                else:
                    for neighbor_id in self._adjacency.get(note_id, {}):
                        if neighbor_id not in on_path:
                            explore(neighbor_id)
                current_path.pop()
                on_path.discard(note_id)

            explore(start_id)
            return paths

    # Connectivity

    def connected_components(self) -> list[list[ZettelNote]]:
        """Group notes into connected components, in insertion order of their first note."""
        with self._lock:
            components = []
            visited: set[str] = set()

            for note_id in self._notes:
                if note_id in visited:
                    continue
                visited.add(note_id)
                component = []
                queue = deque([note_id])
                while queue:
                    current_id = queue.popleft()
                    component.append(self._notes[current_id])
                    for neighbor_id in self._adjacency.get(current_id, {}):
                        if neighbor_id not in visited:
                            visited.add(neighbor_id)
                            queue.append(neighbor_id)
                components.append(component)

            return components

    def degree(self, note_id: str) -> int:
        """Number of distinct links touching a note."""
        with self._lock:
            return sum(
                len(self._links.get(frozenset((note_id, neighbor_id)), {}))
                for neighbor_id in self._adjacency.get(note_id, {})
            )

    def degree_centrality(self) -> dict[str, int]:
        with self._lock:
            return {note_id: self.degree(note_id) for note_id in self._notes}

    def most_connected(self, top_n: int) -> list[ZettelNote]:
        """Notes with the highest degree, ties broken by insertion order."""
        with self._lock:
            if top_n <= 0:
                return []
            centrality = self.degree_centrality()
            # sorted() is stable, so equal degrees keep insertion order
            ranked = sorted(self._notes.values(), key=lambda note: centrality[note.id], reverse=True)
            return ranked[:top_n]

    def most_connected_note(self) -> ZettelNote | None:
        ranked = self.most_connected(1)
        return ranked[0] if ranked else None

    def bridges(self) -> list[ZettelNote]:
        """Notes whose removal would split a connected component in two or more.

        These are the articulation points of the graph, found with an iterative
        version of Tarjan's low-link algorithm.
        """
        with self._lock:
            points = self._articulation_points()
            return [note for note_id, note in self._notes.items() if note_id in points]

    def _articulation_points(self) -> set[str]:
        discovery: dict[str, int] = {}
        low: dict[str, int] = {}
        points: set[str] = set()
        counter = 0

        for root_id in self._notes:
            if root_id in discovery:
                continue

            discovery[root_id] = low[root_id] = counter
            counter += 1
            root_children = 0
            stack: list[tuple[str, str | None, Iterator[str]]] = [
                (root_id, None, iter(self._adjacency[root_id]))
            ]

            while stack:
                node_id, parent_id, neighbors = stack[-1]
                descended = False

                for neighbor_id in neighbors:
                    if neighbor_id == parent_id:
                        continue
                    if neighbor_id in discovery:
                        low[node_id] = min(low[node_id], discovery[neighbor_id])
                        continue
                    discovery[neighbor_id] = low[neighbor_id] = counter
                    counter += 1
                    if node_id == root_id:
                        root_children += 1
                    stack.append((neighbor_id, node_id, iter(self._adjacency[neighbor_id])))
                    descended = True
                    break

                if descended:
                    continue

                stack.pop()
                if parent_id is not None:
                    low[parent_id] = min(low[parent_id], low[node_id])
                    if parent_id != root_id and low[node_id] >= discovery[parent_id]:
                        points.add(parent_id)

            if root_children > 1:
                points.add(root_id)

        return points

    def statistics(self) -> GraphStatistics:
        with self._lock:
            note_count = len(self._notes)
            if note_count == 0:
                return GraphStatistics()

            degrees = self.degree_centrality()
            link_count = len(self.all_links())
            return GraphStatistics(
                note_count=note_count,
                link_count=link_count,
                average_degree=2 * link_count / note_count,
                max_degree=max(degrees.values()),
                component_count=len(self.connected_components()),
            )

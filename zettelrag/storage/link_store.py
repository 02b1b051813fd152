"""Persistence of links as records in the search index."""

from collections import Counter
from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError

from zettelrag.domain.link import Link, LinkStatistics, LinkType
from zettelrag.domain.search import SearchResult
from zettelrag.search_index.base import SearchIndex
from zettelrag.search_index.keywords import keyword_search_all, quote_term
from zettelrag.storage.link_cache import LinkCache

LINK_DOCUMENT_TYPE = "zettel_link"
LINK_RECORD_PREFIX = "link_"
LINK_METADATA_PREFIX = "meta."
DEFAULT_PAGE_SIZE = 1000


class MalformedLinkRecord(ValueError):
    """A stored link record that cannot be turned back into a Link."""


def link_record_id(link: Link) -> str:
    return f"{LINK_RECORD_PREFIX}{link.id}"


def link_to_record(link: Link) -> tuple[str, dict[str, str]]:
    """Serialize a link into the content and metadata of an index record.

    Returns:
        Tuple of (content, metadata)
    """
    metadata = {
        "type": LINK_DOCUMENT_TYPE,
        "source_id": link.source_note_id,
        "target_id": link.target_note_id,
        "link_type": link.type.value,
        "strength": str(link.strength),
        "description": link.description,
        "created_at": str(int(link.created_at.timestamp() * 1000)),
        "link_id": link.id,
    }
    for key, value in link.metadata.items():
        metadata[f"{LINK_METADATA_PREFIX}{key}"] = value

    content = (
        f"Link from {link.source_note_id} to {link.target_note_id}: "
        f"{link.type.value} [{link.description}] (strength: {link.strength:.2f})"
    )
    return content, metadata


def link_from_record(metadata: dict[str, str]) -> Link:
    """Rebuild a link from record metadata.

    Raises:
        MalformedLinkRecord: If the record is not a link or cannot be parsed
    """
    if metadata.get("type") != LINK_DOCUMENT_TYPE:
        raise MalformedLinkRecord(f"Not a link record: type={metadata.get('type')!r}")

    missing = [
        field for field in ("source_id", "target_id", "link_type", "strength") if not metadata.get(field)
    ]
    if missing:
        raise MalformedLinkRecord(f"Missing fields: {', '.join(missing)}")

    link_type = LinkType.parse(metadata["link_type"])
    if link_type is None:
        raise MalformedLinkRecord(f"Unknown link type: {metadata['link_type']!r}")

    try:
        strength = float(metadata["strength"])
    except ValueError as e:
        raise MalformedLinkRecord(f"Invalid strength: {metadata['strength']!r}") from e

    fields = {
        "source_note_id": metadata["source_id"],
        "target_note_id": metadata["target_id"],
        "type": link_type,
        "strength": strength,
        "description": metadata.get("description", ""),
        "metadata": {
            key[len(LINK_METADATA_PREFIX) :]: value
            for key, value in metadata.items()
            if key.startswith(LINK_METADATA_PREFIX)
        },
    }
    if metadata.get("link_id"):
        fields["id"] = metadata["link_id"]
    created_at = metadata.get("created_at", "")
    if created_at.isdigit():
        fields["created_at"] = datetime.fromtimestamp(int(created_at) / 1000, tz=timezone.utc)

    try:
        return Link(**fields)
    except ValidationError as e:
        raise MalformedLinkRecord(str(e)) from e


class LinkStore:
    """Stores links as records of a reserved kind in the search index.

    Links touching a note are found with two keyword lookups (as source and as
    target), so the index needs no graph support. Results are cached per note.
    """

    def __init__(
        self,
        index: SearchIndex,
        cache: LinkCache | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the link store.

        Args:
            index: Search index used as the backing store
            cache: Link cache, a fresh one is created if not given
            page_size: Initial result limit per lookup, raised until every match is read
        """
        self.index = index
        self.cache = cache or LinkCache()
        self.page_size = page_size

    def store(self, link: Link) -> None:
        """Persist a link. Index errors propagate to the caller."""
        content, metadata = link_to_record(link)
        self.index.upsert(link_record_id(link), content, metadata)
        self.cache.add(link)
        logger.debug(f"Stored {link}")

    def store_links(self, links: list[Link]) -> None:
        for link in links:
            self.store(link)

    def delete(self, link: Link) -> None:
        self.index.delete(link_record_id(link))
        self.cache.discard(link)

    def links_for(self, note_id: str) -> list[Link]:
        """Get all links touching a note, outgoing and incoming."""
        cached = self.cache.get(note_id)
        if cached is not None:
            return cached

        links = self._merge(self.outgoing_links(note_id), self.incoming_links(note_id))
        self.cache.load(note_id, links)
        return links

    def outgoing_links(self, note_id: str) -> list[Link]:
        return self._query(f"type:{LINK_DOCUMENT_TYPE} source_id:{quote_term(note_id)}")

    def incoming_links(self, note_id: str) -> list[Link]:
        return self._query(f"type:{LINK_DOCUMENT_TYPE} target_id:{quote_term(note_id)}")

    def links_by_type(self, link_type: LinkType) -> list[Link]:
        return self._query(f"type:{LINK_DOCUMENT_TYPE} link_type:{link_type.value}")

    def links_between(self, source_id: str, target_id: str) -> list[Link]:
        """Get links from `source_id` to `target_id` (directed)."""
        return [link for link in self.outgoing_links(source_id) if link.target_note_id == target_id]

    def exists(self, source_id: str, target_id: str) -> bool:
        return bool(self.links_between(source_id, target_id))

    def all_links(self) -> list[Link]:
        return self._query(f"type:{LINK_DOCUMENT_TYPE}")

    def strong_links(self, min_strength: float) -> list[Link]:
        return [link for link in self.all_links() if link.strength >= min_strength]

    def invalidate(self, note_id: str) -> None:
        """Forget cached links for a note, e.g. after the index was changed elsewhere."""
        self.cache.invalidate(note_id)

    def clear_cache(self) -> None:
        self.cache.clear()

    def statistics(self) -> LinkStatistics:
        links = self.all_links()
        if not links:
            return LinkStatistics()

        return LinkStatistics(
            total_links=len(links),
            average_strength=sum(link.strength for link in links) / len(links),
            link_type_counts=dict(Counter(link.type for link in links)),
        )

    def _query(self, expression: str) -> list[Link]:
        results = keyword_search_all(self.index, expression, self.page_size)
        return self._parse_results(results)

    @staticmethod
    def _parse_results(results: list[SearchResult]) -> list[Link]:
        links = []
        for result in results:
            try:
                links.append(link_from_record(result.metadata))
            except MalformedLinkRecord as e:
                logger.warning(f"Skipping malformed link record {result.id}: {e}")
        return links

    @staticmethod
    def _merge(*groups: list[Link]) -> list[Link]:
        merged: dict[str, Link] = {}
        for group in groups:
            for link in group:
                merged.setdefault(link.id, link)
        return list(merged.values())

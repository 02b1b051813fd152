"""Helpers for building keyword expressions and list-valued metadata."""

import re
from typing import List

from zettelrag.domain.search import SearchResult
from zettelrag.search_index.base import KeywordSearch

_LIST_ITEM = re.compile(r"(?:[^,\\]|\\.)+")
_ESCAPED = re.compile(r"\\(.)")


def quote_term(value: str) -> str:
    """Quote a value for use in a keyword expression, e.g. `source_id:"note 1"`."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote_term(term: str) -> str:
    if len(term) >= 2 and term.startswith('"') and term.endswith('"'):
        return _ESCAPED.sub(r"\1", term[1:-1])
    return term


def join_values(values: List[str]) -> str:
    """Join values into one comma-separated metadata string.

    Commas inside a value are escaped with a backslash, so `split_values`
    gives back the same list.
    """
    return ",".join(value.replace("\\", "\\\\").replace(",", "\\,") for value in values)


def split_values(value: str) -> List[str]:
    return [_ESCAPED.sub(r"\1", item) for item in _LIST_ITEM.findall(value)]


def keyword_search_all(index: KeywordSearch, expression: str, page_size: int) -> List[SearchResult]:
    """Get every document matching an expression.

    The index only takes a result limit, so the limit is doubled until a search
    returns fewer results than asked for.
    """
    limit = max(page_size, 1)
    while True:
        results = index.keyword_search(expression, limit)
        if len(results) < limit:
            return results
        limit *= 2

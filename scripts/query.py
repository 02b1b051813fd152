"""CLI for querying the local index with link-aware retrieval"""

import argparse

from zettelrag.bootstrap import build_service, configure_logging
from zettelrag.config import settings


def main(query: str, index_path: str, link_depth: int, ask: bool) -> None:
    settings.local_index_path = index_path
    service = build_service(settings, with_chat=ask)

    if ask:
        print(service.ask(query))
    else:
        print(service.retrieve_context_with_links(query, link_depth=link_depth))


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("query", type=str, help="Question or search text")
    parser.add_argument(
        "--index",
        type=str,
        required=False,
        help="Local index file",
        default=settings.local_index_path,
    )
    parser.add_argument(
        "--link-depth",
        type=int,
        required=False,
        help="Number of links to follow from each direct match",
        default=settings.default_link_depth,
    )
    parser.add_argument(
        "--ask", action="store_true", help="Answer the query with the LLM instead of printing context"
    )

    args = parser.parse_args()
    configure_logging(settings.log_level)

    main(query=args.query, index_path=args.index, link_depth=args.link_depth, ask=args.ask)

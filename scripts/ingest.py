"""CLI for turning a folder of text or markdown notes into linked Zettelkasten notes in the local index"""

import argparse
from pathlib import Path

from loguru import logger

from zettelrag.bootstrap import build_service, configure_logging
from zettelrag.config import settings


def main(in_folder: str, local_outfile_index: str, enable_llm: bool) -> None:
    folder = Path(in_folder)
    settings.local_index_path = local_outfile_index
    settings.enable_llm_linking = enable_llm

    service = build_service(settings, with_chat=enable_llm)

    files = sorted([*folder.rglob("*.md"), *folder.rglob("*.txt")])
    for file in files:
        content = file.read_text(encoding="utf-8")
        if not content.strip():
            logger.warning(f"Skipping empty file {file}")
            continue

        relative_path = file.relative_to(folder)
        tags = [part.lower() for part in relative_path.parent.parts]
        note = service.create_note(
            content,
            tags=tags,
            metadata={"path": str(relative_path)},
            source_document_ids=[str(relative_path)],
        )
        logger.info(f"Ingested {relative_path} as {note.id}")

    service.save()
    stats = service.graph_statistics()
    logger.info(
        f"Index has {stats.note_count} notes, {stats.link_count} links "
        f"and {stats.component_count} components"
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--in-folder", type=str, required=True, help="Folder containing markdown or text files"
    )
    parser.add_argument(
        "--outfile-index",
        type=str,
        required=False,
        help="Local output index file",
        default=settings.local_index_path,
    )
    parser.add_argument(
        "--llm-linking",
        action="store_true",
        help="Ask the LLM for qualitative relations between promising note pairs",
    )

    args = parser.parse_args()
    configure_logging(settings.log_level)

    main(
        in_folder=args.in_folder,
        local_outfile_index=args.outfile_index,
        enable_llm=args.llm_linking,
    )

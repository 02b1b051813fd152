from zettelrag.retrieval.link_aware import LinkAwareRetriever

PROMPT_TEMPLATE = """Answer the question based on the context from your notes below.
Notes marked [Zettel: ...] were reached by following links from the best matches.

Relevant notes:
{context}

Question: {question}

Answer: """


def get_prompt(
    *,
    question: str,
    retriever: LinkAwareRetriever,
    top_k: int,
    link_depth: int,
) -> str:
    context = retriever.retrieve_expanded(question, top_k=top_k, link_depth=link_depth)
    return PROMPT_TEMPLATE.format(question=question, context=context)


SUMMARY_PROMPT_TEMPLATE = """Provide a concise 1-2 sentence summary of the following text:

{content}"""


def get_summary_prompt(content: str) -> str:
    return SUMMARY_PROMPT_TEMPLATE.format(content=content)

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import chainlit as cl

from drive_search.config.settings import settings
from drive_search.container import configure_container, container
from drive_search.core.errors import InvalidQueryError
from drive_search.core.models.query import SearchResponse
from drive_search.core.services.query_service import (
    REASON_CONFIGURATION,
    REASON_EMPTY_INDEX,
    REASON_NOT_A_SEARCH,
    REASON_PROVIDER,
    QueryService,
)

configure_container(settings)

_REASON_TEXT = {
    REASON_NOT_A_SEARCH: "That doesn't look like a search. Ask about a document, topic or fact.",
    REASON_EMPTY_INDEX: "The index is empty: no documents could be indexed yet.",
    REASON_CONFIGURATION: "Search is not configured: set the root folder and credentials.",
    REASON_PROVIDER: "A search backend is unavailable right now. Try again shortly.",
}


def _format_response(response: SearchResponse) -> str:
    """Render ranked documents as markdown."""
    if not response.documents:
        return _REASON_TEXT.get(
            response.reason or "", "No matching documents found."
        )

    lines = [f"Found {response.total} document(s):", ""]
    for i, doc in enumerate(response.documents, 1):
        title = f"[{doc.display_name}]({doc.view_url})" if doc.view_url else doc.display_name
        lines.append(f"{i}. **{title}** ({doc.score:.2f})")
        if doc.best_snippet:
            lines.append(f"   > {doc.best_snippet}")
    return "\n".join(lines)


@cl.on_chat_start
async def start():
    await cl.Message(
        content="Hi! Ask a question and I'll find the most relevant documents in the shared folder."
    ).send()


@cl.on_message
async def main(message: cl.Message):
    query_service = container.resolve(QueryService)

    try:
        async with cl.Step(name="Document search") as step:
            step.input = message.content
            response = await query_service.search(message.content)
            step.output = (
                f"Search query: {response.query.resolved_text}\n"
                f"Threshold: {response.query.similarity_threshold:.2f}"
            )
    except InvalidQueryError as e:
        await cl.Message(content=f"Invalid query: {e}").send()
        return

    await cl.Message(content=_format_response(response)).send()

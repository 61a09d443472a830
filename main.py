"""Answer Engine

Simple CLI for asking a question against live web results.
"""

import argparse
import asyncio
import json

from app.api.deps import build_orchestrator
from app.config import settings
from app.errors import AnswerEngineError
from app.models.events import SSEEvent
from app.models.pipeline import AnswerQuery


async def ask(query: AnswerQuery):
    """Run one query and print the pipeline progress."""
    print(f"Query: {query.message}")
    print("-" * 50)

    orchestrator = build_orchestrator(settings)

    async def emit(event: SSEEvent):
        event_type = event.event.value
        data = event.data

        if event_type == "retrieval_started":
            print(f"\n[~] Searching, scanning {data.get('pages_to_scan')} page(s)...")

        elif event_type == "sources_ready":
            if data.get("search_failed"):
                print("  [!] Search provider failed")
            if "sources" in data:
                print(f"  [+] {len(data['sources'])} sources")
            print(f"  [+] {data.get('evidence_count')} evidence chunks")
            print(f"\n{'='*50}")

        elif event_type == "answer_progress":
            print(data.get("chunk", ""), end="", flush=True)

        elif event_type == "answer_complete":
            print(f"\n{'='*50}")

        elif event_type == "enrichment_complete":
            status = "ok" if data.get("ok") else "unavailable"
            print(f"[+] {data.get('name')}: {status}")

        elif event_type == "response_complete":
            print(f"\n[*] Done in {data.get('runtime_ms')}ms")

    try:
        payload = await orchestrator.run(query, emit=emit)
    except AnswerEngineError as e:
        print(f"\n[!] Error: {e}")
        return

    extras = {key: value for key, value in payload.to_dict().items() if key != "answer"}
    if extras:
        print(json.dumps(extras, indent=2))


def main():
    parser = argparse.ArgumentParser(description="Answer Engine")
    parser.add_argument("--query", "-q", required=True, help="Question to answer")
    parser.add_argument("--sources", action="store_true", help="Include the source list")
    parser.add_argument("--pages", type=int, default=1, help="Number of result pages to scan")

    args = parser.parse_args()

    query = AnswerQuery(
        message=args.query,
        return_sources=args.sources,
        number_of_pages_to_scan=max(args.pages, 1),
    )
    asyncio.run(ask(query))


if __name__ == "__main__":
    main()

"""citesearch - conversational search with cited answers

Simple CLI for running one query through a focus mode.
"""

import argparse
import asyncio

from citesearch.agents.orchestrator import run
from citesearch.api.deps import get_chat_model, get_embeddings_for
from citesearch.models.profile import PROFILES, get_profile


async def run_search(query: str, focus: str, mode: str, model: str | None = None):
    """Stream the answer for ``query`` to stdout."""
    print(f"Query: {query}  [{focus}/{mode}]")
    print("-" * 50)

    chat_model = get_chat_model(model)
    embeddings = get_embeddings_for(get_profile(focus), mode)

    async for event in run(query, [], chat_model, embeddings, mode, profile=focus):
        event_type = event.event.value
        data = event.data

        if event_type == "sources":
            print(f"\n[*] Sources ({len(data)}):")
            for i, source in enumerate(data, 1):
                meta = source.get("metadata", {})
                print(f"  {i}. {meta.get('title', '')[:80]}")
                print(f"     {meta.get('url', '')}")
            print(f"\n{'='*50}")

        elif event_type == "response":
            print(data, end="", flush=True)

        elif event_type == "end":
            print(f"\n{'='*50}")

        elif event_type == "error":
            print(f"\n[!] Error: {data}")


def main():
    parser = argparse.ArgumentParser(description="citesearch conversational search")
    parser.add_argument("--query", "-q", required=True, help="Question to answer")
    parser.add_argument("--focus", "-f", default="web", choices=sorted(PROFILES), help="Focus mode")
    parser.add_argument(
        "--mode",
        default="balanced",
        choices=["speed", "balanced", "quality"],
        help="Optimization mode",
    )
    parser.add_argument("--model", "-m", help="Model to use (default: from config)")

    args = parser.parse_args()

    asyncio.run(run_search(args.query, args.focus, args.mode, args.model))


if __name__ == "__main__":
    main()

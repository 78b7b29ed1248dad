"""
Drain the embedding backlog out of process.

Embeds every consented event that has no embedding yet, in batches. Safe to
run while the API is serving or alongside another drain: existing
embeddings are skipped and the index keeps the first writer.
"""
import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.container import build_container
from app.core.logging import setup_logging


def generate_embeddings(batch_size: int = 100, max_events: int = 0) -> dict:
    logger = logging.getLogger("scripts.generate_embeddings")
    container = build_container()
    totals = {"created": 0, "skipped": 0, "failed": 0}
    try:
        while True:
            limit = batch_size
            if max_events:
                limit = min(batch_size, max_events - totals["created"] - totals["failed"])
                if limit <= 0:
                    break
            result = container.embeddings.drain_backlog(limit=limit)
            for key in totals:
                totals[key] += result[key]
            logger.info(f"Batch done: {result} (totals: {totals})")
            if result["created"] == 0:
                # Nothing new was embedded: backlog empty or only failing events left
                break
    finally:
        container.close()
    return totals


def main():
    parser = argparse.ArgumentParser(description="Generate embeddings for consented events")
    parser.add_argument("--batch-size", type=int, default=100, help="Events per drain batch")
    parser.add_argument("--max-events", type=int, default=0, help="Stop after this many (0 = all)")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    args = parser.parse_args()

    setup_logging(level=args.log_level)
    totals = generate_embeddings(batch_size=args.batch_size, max_events=args.max_events)
    print(f"Embedding generation complete. Created: {totals['created']}, Errors: {totals['failed']}")


if __name__ == "__main__":
    main()

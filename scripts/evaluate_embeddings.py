"""
Embedding pipeline evaluation.

Embeds a sample of recent consented events that lack an embedding and
reports success rate and latency, plus coverage of the index.
"""
import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.container import build_container
from app.core.errors import DependencyError
from app.core.logging import setup_logging

logger = logging.getLogger("scripts.evaluate_embeddings")


def build_recommendations(metrics: dict) -> list:
    recs = []
    if metrics["processed"] and metrics["success_rate"] < 95:
        recs.append("Embedding success rate is below 95%; check model quota and timeouts")
    if metrics["avg_embedding_ms"] > 2000:
        recs.append("Average embedding latency exceeds 2s; consider more workers or a faster model")
    if metrics["sample_size"] and metrics["coverage_pct"] < 80:
        recs.append("Less than 80% of recent events are indexed; run scripts/generate_embeddings.py")
    if not recs:
        recs.append("Embedding pipeline is healthy")
    return recs


def evaluate(sample_size: int = 100, max_embed: int = 50) -> dict:
    container = build_container()
    started = time.perf_counter()
    try:
        sample = container.events.query_events(consent_only=True, limit=sample_size)
        missing = [e["_id"] for e in sample if not container.index.has_embedding(e["_id"])]
        logger.info("Sampled events", extra={"sample": len(sample), "missing": len(missing)})

        timings, successful, failed = [], 0, 0
        for event_id in missing[:max_embed]:
            t0 = time.perf_counter()
            try:
                container.embeddings.create_event_embedding(event_id)
                timings.append((time.perf_counter() - t0) * 1000)
                successful += 1
            except DependencyError as e:
                failed += 1
                logger.error(f"Embedding failed for {event_id}: {e.message}")

        processed = successful + failed
        indexed = sum(1 for e in sample if container.index.has_embedding(e["_id"]))
        metrics = {
            "sample_size": len(sample),
            "processed": processed,
            "success_rate": round(successful / processed * 100, 2) if processed else 0.0,
            "avg_embedding_ms": round(sum(timings) / len(timings), 2) if timings else 0.0,
            "coverage_pct": round(indexed / len(sample) * 100, 2) if sample else 0.0,
            "index_size": container.index.count(),
            "total_ms": round((time.perf_counter() - started) * 1000, 2),
        }
    finally:
        container.close()

    return {"metrics": metrics, "recommendations": build_recommendations(metrics)}


def main():
    parser = argparse.ArgumentParser(description="Evaluate the embedding pipeline")
    parser.add_argument("--sample-size", type=int, default=100)
    parser.add_argument("--max-embed", type=int, default=50)
    args = parser.parse_args()

    setup_logging()
    report = evaluate(sample_size=args.sample_size, max_embed=args.max_embed)
    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()

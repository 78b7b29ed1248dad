"""
Seed demo pages and consented events.

Also creates an admin user and prints a session token for trying the
authenticated endpoints locally.
"""
import argparse
import random
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.container import build_container
from app.models.event import serialize_metadata
from app.repositories.events import utcnow
from app.services.anonymize import fingerprint

PAGES = [
    ("https://example.com/", "Home Page"),
    ("https://example.com/about", "About Us"),
    ("https://example.com/products", "Products"),
    ("https://example.com/contact", "Contact"),
    ("https://example.com/blog", "Blog"),
]
EVENT_TYPES = ["pageview", "click", "form_submit"]


def seed(days: int = 30, visitors: int = 5):
    container = build_container()
    container.ensure_indexes()
    events_col = container.db_manager.get_collection("events")
    visitor_hashes = [
        fingerprint(f"203.0.113.{i}", "Mozilla/5.0 (seed data)") for i in range(visitors)
    ]

    try:
        for url, title in PAGES:
            page = container.events.create_page_if_absent(url, title)
            event_count = random.randint(10, 60)
            docs = []
            for _ in range(event_count):
                ts = utcnow() - timedelta(days=random.randint(0, days - 1), hours=random.randint(0, 23))
                docs.append({
                    "page_id": page["_id"],
                    "event_type": random.choice(EVENT_TYPES),
                    "visitor_hash": random.choice(visitor_hashes),
                    "user_agent": "Mozilla/5.0 (seed data)",
                    "metadata_json": serialize_metadata({}),
                    "consent_given": True,
                    "timestamp": ts,
                })
            events_col.insert_many(docs)
            print(f"Created {event_count} events for {title}")

        container.cache.invalidate_all()

        admin = container.users.create_user("admin@example.com", roles=["admin", "viewer"], name="Admin")
        token = container.users.create_session(admin["_id"])
        print(f"Admin session token: {token}")
    finally:
        container.close()

    print("Seed completed successfully!")


def main():
    parser = argparse.ArgumentParser(description="Seed demo analytics data")
    parser.add_argument("--days", type=int, default=30)
    parser.add_argument("--visitors", type=int, default=5)
    args = parser.parse_args()
    seed(days=args.days, visitors=args.visitors)


if __name__ == "__main__":
    main()

"""
MongoDB Index Creation Script
Creates the unique and query indexes the collector relies on
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.database import DatabaseManager
from app.repositories.indexes import ensure_indexes


def main():
    db_manager = DatabaseManager()
    print("=" * 60)
    print(f"Creating indexes on {db_manager.config.DB}")
    print("=" * 60)

    ensure_indexes(db_manager)

    for name in ("pages", "events", "embeddings", "sessions"):
        indexes = list(db_manager.get_collection(name).list_indexes())
        print(f"  {name}: {len(indexes)} indexes")
        for idx in indexes:
            print(f"    - {idx['name']}")

    db_manager.close()
    print("Index creation complete")


if __name__ == "__main__":
    main()

from pymongo import ASCENDING, DESCENDING

from app.core.database import DatabaseManager


def ensure_indexes(db_manager: DatabaseManager):
    # Pages
    db_manager.get_collection("pages").create_index([("url", ASCENDING)], unique=True, name="url_unique")
    # Events
    events = db_manager.get_collection("events")
    events.create_index([("consent_given", ASCENDING), ("timestamp", DESCENDING)], name="consent_ts")
    events.create_index([("visitor_hash", ASCENDING)], name="visitor_hash")
    events.create_index([("page_id", ASCENDING)], name="page_id")
    # Embeddings
    embeddings = db_manager.get_collection("embeddings")
    embeddings.create_index([("event_id", ASCENDING)], unique=True, name="event_unique")
    embeddings.create_index([("visitor_hash", ASCENDING)], name="visitor_hash")
    embeddings.create_index([("created_at", DESCENDING)], name="created_desc")
    # Sessions
    db_manager.get_collection("sessions").create_index([("token", ASCENDING)], unique=True, name="token_unique")

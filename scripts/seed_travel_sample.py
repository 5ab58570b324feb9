#!/usr/bin/env python3
"""
Load the travel sample dataset into Firestore and the hotel search index.

Documents are read from a JSON array or JSON-lines file. Each document needs
`type` and `id` fields; it is stored under `<type>_<id>` in the collection
configured for its type. Hotels are additionally indexed into Elasticsearch.

Usage:
    python scripts/seed_travel_sample.py travel-sample.json
    python scripts/seed_travel_sample.py travel-sample.jsonl --skip-index
"""

import os, sys
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

from elasticsearch import Elasticsearch
from elasticsearch.helpers import bulk

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from app.config import settings
from app.dependencies import get_elasticsearch_client, get_firestore_client

logger = logging.getLogger("seed_travel_sample")

BATCH_SIZE = 400

COLLECTIONS = {
    "airport": settings.airports_collection,
    "airline": settings.airlines_collection,
    "route": settings.routes_collection,
    "hotel": settings.hotels_collection,
}

HOTEL_MAPPING = {
    "properties": {
        "type": {"type": "keyword"},
        "name": {"type": "text"},
        "description": {"type": "text"},
        "country": {"type": "text"},
        "city": {"type": "text"},
        "state": {"type": "text"},
        "address": {"type": "text"},
    }
}


def read_documents(path: Path) -> Iterator[Dict[str, Any]]:
    with path.open("r", encoding="utf-8") as f:
        head = f.read(1)
        while head and head.isspace():
            head = f.read(1)
        f.seek(0)
        if head == "[":
            yield from json.load(f)
            return
        for line in f:
            line = line.strip()
            if line:
                yield json.loads(line)


def document_id(doc: Dict[str, Any]) -> str:
    return f"{doc['type']}_{doc['id']}"


def prepare(doc: Dict[str, Any]) -> Dict[str, Any]:
    if doc.get("type") == "airport":
        doc = {**doc, "airportname_lower": (doc.get("airportname") or "").lower()}
    return doc


def seed_firestore(db, docs: List[Dict[str, Any]]) -> int:
    written = 0
    batch = db.batch()
    pending = 0
    for doc in docs:
        ref = db.collection(COLLECTIONS[doc["type"]]).document(document_id(doc))
        batch.set(ref, prepare(doc))
        pending += 1
        if pending == BATCH_SIZE:
            batch.commit()
            written += pending
            batch = db.batch()
            pending = 0
    if pending:
        batch.commit()
        written += pending
    return written


def seed_hotel_index(es: Elasticsearch, hotels: List[Dict[str, Any]]) -> int:
    if not es.indices.exists(index=settings.hotel_index):
        es.indices.create(index=settings.hotel_index, mappings=HOTEL_MAPPING)
        logger.info(f"Created index {settings.hotel_index}")

    actions = (
        {"_index": settings.hotel_index, "_id": document_id(hotel), "_source": hotel}
        for hotel in hotels
    )
    success, _ = bulk(es, actions)
    return success


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load the travel sample dataset")
    parser.add_argument("path", type=Path, help="JSON array or JSON-lines file with travel sample documents")
    parser.add_argument("--skip-index", action="store_true", help="Do not index hotels into Elasticsearch")
    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=settings.log_level)
    args = build_parser().parse_args(argv)

    docs = [d for d in read_documents(args.path) if d.get("type") in COLLECTIONS]
    logger.info(f"Read {len(docs)} travel sample documents from {args.path}")

    written = seed_firestore(get_firestore_client(), docs)
    logger.info(f"Wrote {written} documents to Firestore")

    if not args.skip_index:
        hotels = [d for d in docs if d["type"] == "hotel"]
        indexed = seed_hotel_index(get_elasticsearch_client(), hotels)
        logger.info(f"Indexed {indexed} hotels into {settings.hotel_index}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

import json
from unittest.mock import MagicMock, patch

import pytest

from scripts import seed_travel_sample as seed

DOCS = [
    {"type": "airport", "id": 3469, "airportname": "San Francisco Intl", "faa": "SFO"},
    {"type": "airline", "id": 10, "name": "40-Mile Air"},
    {"type": "route", "id": 10000, "airlineid": "airline_10", "sourceairport": "TLV",
     "destinationairport": "MRS", "schedule": [{"day": 0, "utc": "10:13:00", "flight": "AF198"}]},
    {"type": "hotel", "id": 10025, "name": "Medway Youth Hostel", "city": "Medway"},
    {"type": "landmark", "id": 10019, "name": "Bistro Bruno"},
]


@pytest.mark.parametrize("as_lines", [False, True])
def test_read_documents(tmp_path, as_lines):
    path = tmp_path / "travel-sample.json"
    if as_lines:
        path.write_text("\n".join(json.dumps(d) for d in DOCS) + "\n")
    else:
        path.write_text(json.dumps(DOCS, indent=2))

    assert list(seed.read_documents(path)) == DOCS


def test_prepare_derives_lowercase_airport_name():
    airport = seed.prepare(DOCS[0])

    assert airport["airportname_lower"] == "san francisco intl"
    assert "airportname_lower" not in DOCS[0]
    assert seed.prepare(DOCS[1]) == DOCS[1]


def test_seed_firestore_routes_documents_by_type(fake_db):
    docs = [d for d in DOCS if d["type"] in seed.COLLECTIONS]

    written = seed.seed_firestore(fake_db, docs)

    assert written == 4
    assert fake_db.data["airports"]["airport_3469"]["airportname_lower"] == "san francisco intl"
    assert fake_db.data["airlines"]["airline_10"]["name"] == "40-Mile Air"
    assert fake_db.data["routes"]["route_10000"]["airlineid"] == "airline_10"
    assert fake_db.data["hotels"]["hotel_10025"]["city"] == "Medway"


def test_seed_firestore_commits_in_batches(fake_db):
    docs = [{"type": "airline", "id": i, "name": f"Airline {i}"} for i in range(seed.BATCH_SIZE + 1)]

    written = seed.seed_firestore(fake_db, docs)

    assert written == seed.BATCH_SIZE + 1
    assert len(fake_db.data["airlines"]) == seed.BATCH_SIZE + 1
    assert [b.commits for b in fake_db.batches] == [1, 1]


def test_seed_hotel_index_creates_index(fake_es):
    fake_es.indices.exists.return_value = False
    hotels = [DOCS[3]]

    with patch.object(seed, "bulk", return_value=(1, [])) as bulk:
        indexed = seed.seed_hotel_index(fake_es, hotels)

    assert indexed == 1
    fake_es.indices.create.assert_called_once_with(index="hotels", mappings=seed.HOTEL_MAPPING)
    actions = list(bulk.call_args.args[1])
    assert actions == [{"_index": "hotels", "_id": "hotel_10025", "_source": DOCS[3]}]


def test_main_skip_index(tmp_path, fake_db):
    path = tmp_path / "travel-sample.json"
    path.write_text(json.dumps(DOCS))
    es_factory = MagicMock()

    with patch.object(seed, "get_firestore_client", return_value=fake_db), \
            patch.object(seed, "get_elasticsearch_client", es_factory):
        assert seed.main([str(path), "--skip-index"]) == 0

    assert "landmarks" not in fake_db.data
    assert len(fake_db.data["hotels"]) == 1
    es_factory.assert_not_called()

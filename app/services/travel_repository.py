"""
Travel Repository for the travel sample API.

This repository wraps every read/write the API performs:
- Airports, routes & airlines (Firestore)
- Hotels (Elasticsearch full-text search + Firestore document lookups)
- Users & booked flights (Firestore)

Each search operation records a readable description of the queries it
issued in the response `context`, mirroring what is sent to the data stores.
"""

import json
import math
import random
import uuid
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from elasticsearch import Elasticsearch
from firebase_admin import firestore
from google.api_core import exceptions as gapi_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from app.config import settings
from app.errors import UserExistsError, UserNotFoundError
from app.models.travel import (
    Airport, AirportInfo, Flight, Hotel, BookedFlight, User,
    AirportSearchResponse, FlightSearchResponse, HotelSearchResponse,
    UserFlightsResponse, BookFlightsResponse,
)

logger = logging.getLogger(__name__)

HOTEL_FIELDS = ["country", "city", "state", "address", "name", "description"]
BOOKING_DATE_FORMAT = "%m/%d/%Y"


def _describe(collection: str, *clauses: str, select: Optional[str] = None) -> str:
    text = f"SELECT {select or '*'} FROM {collection}"
    if clauses:
        text += " WHERE " + " AND ".join(clauses)
    return text


class TravelRepository:
    def __init__(self, db: firestore.Client, es: Elasticsearch):
        self.db = db
        self.es = es

    # -------------------------
    # Airports
    # -------------------------
    def get_airports(self, search_key: str) -> AirportSearchResponse:
        """Return all airports matching an FAA code, an ICAO code or a name prefix."""
        resp = AirportSearchResponse()
        col = self.db.collection(settings.airports_collection)

        same_case = search_key.upper() == search_key or search_key.lower() == search_key
        if same_case and len(search_key) == 3:
            value = search_key.upper()
            query = col.where(filter=FieldFilter("faa", "==", value))
            resp.add_context(_describe(settings.airports_collection, f"faa == {value!r}", select="airportname"))
        elif same_case and len(search_key) == 4:
            value = search_key.upper()
            query = col.where(filter=FieldFilter("icao", "==", value))
            resp.add_context(_describe(settings.airports_collection, f"icao == {value!r}", select="airportname"))
        else:
            # Prefix match on the lower-cased name
            value = search_key.lower()
            query = (
                col.where(filter=FieldFilter("airportname_lower", ">=", value))
                .where(filter=FieldFilter("airportname_lower", "<", value + "\uf8ff"))
            )
            resp.add_context(_describe(
                settings.airports_collection,
                f"airportname_lower STARTS WITH {value!r}",
                select="airportname",
            ))

        for snap in query.stream():
            data = snap.to_dict() or {}
            resp.data.append(Airport(airportname=data.get("airportname", "")))
        return resp

    # -------------------------
    # Flight paths
    # -------------------------
    def _find_faa(self, airport_name: str) -> str:
        col = self.db.collection(settings.airports_collection)
        faa = ""
        for snap in col.where(filter=FieldFilter("airportname", "==", airport_name)).stream():
            faa = (snap.to_dict() or {}).get("faa", "") or ""
        return faa

    def get_flight_paths(self, from_airport: str, to_airport: str, day_of_week: int) -> FlightSearchResponse:
        resp = FlightSearchResponse()

        # Find airport faa codes for source and destination airports
        resp.add_context(
            _describe(settings.airports_collection, f"airportname == {from_airport!r}", select="faa AS fromFaa")
            + " UNION "
            + _describe(settings.airports_collection, f"airportname == {to_airport!r}", select="faa AS toFaa")
        )
        info = AirportInfo(fromFaa=self._find_faa(from_airport), toFaa=self._find_faa(to_airport))

        # Search for flights
        resp.add_context(
            _describe(
                f"{settings.routes_collection} AS r UNNEST r.schedule AS s"
                f" JOIN {settings.airlines_collection} AS a ON KEYS r.airlineid",
                f"r.sourceairport == {info.fromFaa!r}",
                f"r.destinationairport == {info.toFaa!r}",
                f"s.day == {day_of_week}",
                select="a.name, s.flight, s.utc, r.sourceairport, r.destinationairport, r.equipment",
            )
            + " ORDER BY a.name ASC"
        )
        routes = (
            self.db.collection(settings.routes_collection)
            .where(filter=FieldFilter("sourceairport", "==", info.fromFaa))
            .where(filter=FieldFilter("destinationairport", "==", info.toFaa))
            .stream()
        )

        airline_names: Dict[str, Optional[str]] = {}
        flights: List[Flight] = []
        for snap in routes:
            route = snap.to_dict() or {}
            airline_id = route.get("airlineid", "")
            if airline_id not in airline_names:
                airline_names[airline_id] = self._get_airline_name(airline_id)
            airline_name = airline_names[airline_id]
            if airline_name is None:
                # Inner join: routes without an airline document are dropped
                continue

            for sched in route.get("schedule") or []:
                if sched.get("day") != day_of_week:
                    continue
                flights.append(Flight(
                    name=airline_name,
                    flight=sched.get("flight", ""),
                    utc=sched.get("utc", ""),
                    sourceairport=route.get("sourceairport", ""),
                    destinationairport=route.get("destinationairport", ""),
                    equipment=route.get("equipment", "") or "",
                ))

        flights.sort(key=lambda f: f.name)
        for flight in flights:
            flight.flighttime = int(math.ceil(random.random() * 8000))
            flight.price = math.ceil(flight.flighttime / 8 * 100) / 100
        resp.data = flights
        return resp

    def _get_airline_name(self, airline_id: str) -> Optional[str]:
        if not airline_id:
            return None
        snap = self.db.collection(settings.airlines_collection).document(airline_id).get()
        if not snap.exists:
            return None
        return (snap.to_dict() or {}).get("name", "")

    # -------------------------
    # Hotels
    # -------------------------
    def build_hotel_query(self, description: str, location: str) -> Dict[str, Any]:
        must: List[Dict[str, Any]] = [{"term": {"type": "hotel"}}]

        if location and location != "*":
            must.append({"bool": {
                "should": [
                    {"match_phrase": {field: location}}
                    for field in ("country", "city", "state", "address")
                ],
                "minimum_should_match": 1,
            }})

        if description and description != "*":
            must.append({"bool": {
                "should": [
                    {"match_phrase": {field: description}}
                    for field in ("description", "name")
                ],
                "minimum_should_match": 1,
            }})

        return {"bool": {"must": must}}

    def get_hotels(self, description: str, location: str) -> HotelSearchResponse:
        resp = HotelSearchResponse()
        query = self.build_hotel_query(description, location)
        resp.add_context(f"SEARCH {settings.hotel_index} {json.dumps(query)}")

        result = self.es.search(
            index=settings.hotel_index,
            query=query,
            size=settings.hotel_search_limit,
            source=False,
        )
        hit_ids = [hit["_id"] for hit in result["hits"]["hits"]]
        if not hit_ids:
            return resp

        col = self.db.collection(settings.hotels_collection)
        refs = [col.document(hit_id) for hit_id in hit_ids]
        # Some hotels are missing pieces of data; missing fields stay empty
        found: Dict[str, Dict[str, Any]] = {}
        for snap in self.db.get_all(refs, field_paths=HOTEL_FIELDS):
            if snap.exists:
                found[snap.id] = snap.to_dict() or {}

        for hit_id in hit_ids:
            doc = found.get(hit_id, {})
            resp.data.append(Hotel(**{
                field: doc.get(field) or "" for field in HOTEL_FIELDS
            }))
        return resp

    # -------------------------
    # Users
    # -------------------------
    def _users(self):
        return self.db.collection(settings.users_collection)

    def create_user(self, username: str, password: str):
        user = User(name=username, password=password, flights=[])
        try:
            self._users().document(username).create(user.model_dump())
        except gapi_exceptions.AlreadyExists:
            raise UserExistsError()
        logger.info(f"Created user: {username}")

    def get_user_password(self, username: str) -> str:
        snap = self._users().document(username).get(field_paths=["password"])
        if not snap.exists:
            raise UserNotFoundError()
        return (snap.to_dict() or {}).get("password") or ""

    def get_user_flights(self, username: str) -> UserFlightsResponse:
        resp = UserFlightsResponse()

        snap = self._users().document(username).get(field_paths=["flights"])
        if not snap.exists:
            raise UserNotFoundError()
        flight_ids = (snap.to_dict() or {}).get("flights") or []

        flights_col = self.db.collection(settings.flights_collection)
        for flight_id in flight_ids:
            flight_snap = flights_col.document(flight_id).get()
            if not flight_snap.exists:
                raise gapi_exceptions.NotFound(f"booked flight {flight_id} not found")
            resp.data.append(BookedFlight(**(flight_snap.to_dict() or {})))
        return resp

    def update_user_flights(self, username: str, booked_flights: List[BookedFlight]) -> BookFlightsResponse:
        resp = BookFlightsResponse()

        user_ref = self._users().document(username)
        snap = user_ref.get()
        if not snap.exists:
            raise UserNotFoundError()
        user = User(**snap.to_dict())

        flights_col = self.db.collection(settings.flights_collection)
        booked_on = datetime.now().strftime(BOOKING_DATE_FORMAT)
        for flight in booked_flights:
            flight = flight.model_copy(update={"bookedon": booked_on})
            resp.data.added.append(flight)

            flight_id = str(uuid.uuid4())
            user.flights.append(flight_id)
            flights_col.document(flight_id).set(flight.model_dump())

        # A concurrent change to the user document fails the write; it is not retried
        user_ref.update(
            {"flights": user.flights},
            option=self.db.write_option(last_update_time=snap.update_time),
        )
        logger.info(f"Booked {len(booked_flights)} flight(s) for user: {username}")
        return resp

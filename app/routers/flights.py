from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
import re
import logging

from app.dependencies import get_travel_repository
from app.services.travel_repository import TravelRepository
from app.models.travel import FlightSearchResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["flights"])

LEAVE_DATE_FORMAT = "%m/%d/%Y"
# strptime accepts unpadded fields; the leave date must be zero padded
LEAVE_DATE_PATTERN = re.compile(r"[0-9]{2}/[0-9]{2}/[0-9]{4}")


def day_of_week(leave: str) -> int:
    """Parse a MM/DD/YYYY date and return its weekday, Sunday being 0."""
    if not LEAVE_DATE_PATTERN.fullmatch(leave):
        raise ValueError(f"leave date {leave!r} does not match MM/DD/YYYY")
    return datetime.strptime(leave, LEAVE_DATE_FORMAT).isoweekday() % 7


@router.get("/flightPaths/{from_airport}/{to_airport}", response_model=FlightSearchResponse)
def flight_search(
    from_airport: str,
    to_airport: str,
    leave: str = Query(""),
    repo: TravelRepository = Depends(get_travel_repository)
):
    """
    Find the flights between two airports (by name) on the weekday of `leave`.
    """
    try:
        day = day_of_week(leave)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    try:
        return repo.get_flight_paths(from_airport, to_airport, day)
    except Exception as e:
        logger.error(f"Error searching flight paths {from_airport} -> {to_airport}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

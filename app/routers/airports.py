from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from app.dependencies import get_travel_repository
from app.services.travel_repository import TravelRepository
from app.models.travel import AirportSearchResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["airports"])


@router.get("/airports", response_model=AirportSearchResponse)
def airport_search(
    search: str = Query(""),
    repo: TravelRepository = Depends(get_travel_repository)
):
    """
    Search airports by FAA code, ICAO code or airport name prefix.
    """
    try:
        return repo.get_airports(search)
    except Exception as e:
        logger.error(f"Error searching airports: {e}")
        raise HTTPException(status_code=500, detail=str(e))

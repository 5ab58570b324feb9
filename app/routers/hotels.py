from fastapi import APIRouter, Depends, HTTPException
import logging

from app.dependencies import get_travel_repository
from app.services.travel_repository import TravelRepository
from app.models.travel import HotelSearchResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["hotels"])


@router.get("/hotel/{description}", response_model=HotelSearchResponse)
@router.get("/hotel/{description}/", response_model=HotelSearchResponse, include_in_schema=False)
@router.get("/hotel/{description}/{location}", response_model=HotelSearchResponse)
@router.get("/hotel/{description}/{location}/", response_model=HotelSearchResponse, include_in_schema=False)
def hotel_search(
    description: str,
    location: str = "",
    repo: TravelRepository = Depends(get_travel_repository)
):
    """
    Full-text hotel search. `*` (or an empty segment) matches any description/location.
    """
    try:
        return repo.get_hotels(description, location)
    except Exception as e:
        logger.error(f"Error searching hotels: {e}")
        raise HTTPException(status_code=500, detail=str(e))

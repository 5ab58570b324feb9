"""
User router for login/signup and flight bookings.
"""

from fastapi import APIRouter, HTTPException, Depends, Request
from pydantic import ValidationError
import hmac
import logging

from app.dependencies import get_travel_repository, get_authed_user
from app.errors import UserExistsError, UserNotFoundError, BadPasswordError
from app.services.auth_service import get_auth_service, AuthService
from app.services.travel_repository import TravelRepository
from app.models.travel import (
    AuthedUser, UserCredentialsRequest, UserTokenResponse, TokenData,
    UserFlightsResponse, BookFlightsRequest, BookFlightsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["user"])


def _issue_token(auth_service: AuthService, user: str) -> UserTokenResponse:
    try:
        token = auth_service.create_token(user)
    except Exception as e:
        logger.error(f"Error creating token for {user}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return UserTokenResponse(data=TokenData(token=token))


@router.post("/user/login", response_model=UserTokenResponse)
def user_login(
    request: UserCredentialsRequest,
    repo: TravelRepository = Depends(get_travel_repository),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Check the user's password and issue a token
    """
    try:
        password = repo.get_user_password(request.user)
    except UserNotFoundError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except Exception as e:
        logger.exception(f"Error looking up user {request.user}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if not hmac.compare_digest(password.encode(), request.password.encode()):
        logger.warning(f"Password mismatch for user: {request.user}")
        raise HTTPException(status_code=401, detail=str(BadPasswordError()))

    return _issue_token(auth_service, request.user)


@router.post("/user/signup", response_model=UserTokenResponse)
def user_signup(
    request: UserCredentialsRequest,
    repo: TravelRepository = Depends(get_travel_repository),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Create a user and issue a token
    """
    try:
        repo.create_user(request.user, request.password)
    except UserExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.exception(f"Error creating user {request.user}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return _issue_token(auth_service, request.user)


# The authenticated user is taken from the token; the path segment is informational
@router.get("/user/{username}/flights", response_model=UserFlightsResponse)
def user_flights(
    username: str,
    user: AuthedUser = Depends(get_authed_user),
    repo: TravelRepository = Depends(get_travel_repository)
):
    try:
        return repo.get_user_flights(user.name)
    except Exception as e:
        logger.error(f"Error getting flights for user {user.name}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


async def read_booking_request(
    request: Request,
    user: AuthedUser = Depends(get_authed_user)
) -> BookFlightsRequest:
    """
    Decode the booking body. It depends on the authed user so that a bad
    token is reported ahead of a bad body.
    """
    try:
        return BookFlightsRequest.model_validate_json(await request.body())
    except ValidationError as e:
        logger.warning(f"Undecodable booking request from {user.name}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/user/{username}/flights", response_model=BookFlightsResponse)
def user_book_flight(
    username: str,
    user: AuthedUser = Depends(get_authed_user),
    booking: BookFlightsRequest = Depends(read_booking_request),
    repo: TravelRepository = Depends(get_travel_repository)
):
    """
    Book flights for the authenticated user
    """
    try:
        return repo.update_user_flights(user.name, booking.flights)
    except Exception as e:
        logger.error(f"Error booking flights for user {user.name}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

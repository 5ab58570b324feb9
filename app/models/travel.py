from pydantic import BaseModel, Field
from typing import List


# ---------------------------
# Core Models
# ---------------------------

class Airport(BaseModel):
    airportname: str = ""


class AirportInfo(BaseModel):
    fromFaa: str = ""
    toFaa: str = ""


class Flight(BaseModel):
    name: str = ""               # airline name
    flight: str = ""
    equipment: str = ""
    utc: str = ""
    sourceairport: str = ""
    destinationairport: str = ""
    price: float = 0
    flighttime: int = 0


class Hotel(BaseModel):
    country: str = ""
    city: str = ""
    state: str = ""
    address: str = ""
    name: str = ""
    description: str = ""


class BookedFlight(BaseModel):
    name: str = ""
    flight: str = ""
    price: float = 0
    date: str = ""
    sourceairport: str = ""
    destinationairport: str = ""
    bookedon: str = ""


class User(BaseModel):
    name: str
    password: str
    flights: List[str] = []  # booked flight document ids


class AuthedUser(BaseModel):
    name: str


# ---------------------------
# Request/Response Models
# ---------------------------

class Envelope(BaseModel):
    context: List[str] = Field(default_factory=list)

    def add_context(self, msg: str):
        self.context.append(msg)


class AirportSearchResponse(Envelope):
    data: List[Airport] = Field(default_factory=list)


class FlightSearchResponse(Envelope):
    data: List[Flight] = Field(default_factory=list)


class HotelSearchResponse(Envelope):
    data: List[Hotel] = Field(default_factory=list)


class UserCredentialsRequest(BaseModel):
    user: str
    password: str


class TokenData(BaseModel):
    token: str = ""


class UserTokenResponse(Envelope):
    data: TokenData = Field(default_factory=TokenData)


class UserFlightsResponse(Envelope):
    data: List[BookedFlight] = Field(default_factory=list)


class BookFlightsRequest(BaseModel):
    flights: List[BookedFlight] = []


class AddedFlights(BaseModel):
    added: List[BookedFlight] = Field(default_factory=list)


class BookFlightsResponse(Envelope):
    data: AddedFlights = Field(default_factory=AddedFlights)


class FailureResponse(BaseModel):
    failure: str

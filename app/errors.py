"""
Domain errors raised by the repository and the token service.

Each error carries a fixed, user-facing message; routers map them onto
HTTP status codes and the `{"failure": "<message>"}` envelope.
"""


class TravelError(Exception):
    message = "travel api error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class UserExistsError(TravelError):
    message = "user already exists"


class UserNotFoundError(TravelError):
    message = "user does not exist"


class BadPasswordError(TravelError):
    message = "password does not match"


class BadAuthHeaderError(TravelError):
    message = "bad authentication header format"


class BadAuthError(TravelError):
    message = "invalid auth token"

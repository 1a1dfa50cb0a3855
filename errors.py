"""Error taxonomy shared by the planner, the service adapters and the API."""


class TripPlannerError(Exception):
    """Base class for every error the planner surfaces to a user."""


class ValidationError(TripPlannerError):
    """A required form field is missing. Raised before any network call."""


class ServiceError(TripPlannerError):
    """The itinerary or image service failed or returned unusable content."""


class UnknownError(TripPlannerError):
    """Anything unexpected, normalized to a generic user message."""

    def __init__(self, message: str = "An unexpected error occurred."):
        super().__init__(message)

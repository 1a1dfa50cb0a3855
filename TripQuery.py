from dataclasses import dataclass
from typing import Optional

from dataclasses_json import dataclass_json

from errors import ValidationError


@dataclass_json
@dataclass(frozen=True)
class LatLng:
    latitude: float
    longitude: float


@dataclass_json
@dataclass
class TripQuery:
    source: str
    destination: str
    interests: str
    user_location: Optional[LatLng] = None

    def missing_fields(self) -> list[str]:
        """Names of required fields that are empty. Whitespace counts as filled in."""
        return [
            name for name in ("source", "destination", "interests")
            if not getattr(self, name)
        ]

    def validate(self) -> None:
        if self.missing_fields():
            raise ValidationError("Please fill in all fields.")

    def location_hint(self) -> str:
        """Prompt sentence describing the user's position, or empty string."""
        if self.user_location is None:
            return ""
        return (
            f"The user's current location is approximately latitude "
            f"{self.user_location.latitude}, longitude {self.user_location.longitude}. "
            'You can use this for more relevant "nearby" suggestions.'
        )

import uuid
from dataclasses import dataclass, field
from typing import Optional

from dataclasses_json import LetterCase, dataclass_json


def generate_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass_json
@dataclass(frozen=True)
class PlaceReference:
    uri: str
    title: str


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class LocationEntry:
    place: PlaceReference
    id: str = field(default_factory=generate_id)
    image_url: Optional[str] = None
    image_loading: bool = False

    @property
    def title(self) -> str:
        return self.place.title

    def start_loading(self) -> bool:
        if self.image_loading or self.image_url is not None:
            return False
        self.image_loading = True
        return True

    def settle(self, image_url: Optional[str] = None) -> bool:
        """Finish a fetch. Only a loading entry can settle."""
        if not self.image_loading:
            return False
        self.image_url = image_url
        self.image_loading = False
        return True


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class TripPlan:
    itinerary: str
    locations: list[LocationEntry] = field(default_factory=list)
    generation: int = 0

    @classmethod
    def from_places(cls, itinerary: str, places: list[PlaceReference],
                    generation: int = 0) -> "TripPlan":
        return cls(
            itinerary=itinerary,
            locations=[LocationEntry(place=p) for p in places],
            generation=generation,
        )

    def entry(self, entry_id: str) -> Optional[LocationEntry]:
        return next((e for e in self.locations if e.id == entry_id), None)

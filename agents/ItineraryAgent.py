import logging
import os
from dataclasses import dataclass, field

from google import genai
from google.genai import types

from errors import ServiceError
from TripQuery import TripQuery

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

EMPTY_RESPONSE = "Received an empty response from the AI. Please try a different query."


@dataclass(frozen=True)
class GroundingReference:
    source: str  # "maps" or "web"
    uri: str
    title: str


@dataclass
class Itinerary:
    text: str
    references: list[GroundingReference] = field(default_factory=list)


def _build_prompt(query: TripQuery) -> str:
    return (
        "You are an expert trip planner. Your task is to suggest interesting places "
        "to visit between a source and a destination, based on the user's interests.\n"
        "Your response should be engaging, helpful, and formatted as a simple travel itinerary.\n\n"
        f"Source: {query.source}\n"
        f"Destination: {query.destination}\n"
        f"Interests: {query.interests}\n"
        + (f"{query.location_hint()}\n" if query.user_location else "")
        + "\nPlease provide a suggested itinerary. For each suggested stop, provide a title "
        "using markdown bold (**Title**) and a brief, engaging description of 1-2 sentences. "
        "Structure the entire response as a coherent plan.\n"
        "Do not use numbered lists."
    )


def _build_config(query: TripQuery) -> types.GenerateContentConfig:
    tool_config = None
    if query.user_location is not None:
        tool_config = types.ToolConfig(
            retrieval_config=types.RetrievalConfig(
                lat_lng=types.LatLng(
                    latitude=query.user_location.latitude,
                    longitude=query.user_location.longitude,
                ),
            ),
        )
    return types.GenerateContentConfig(
        tools=[types.Tool(google_maps=types.GoogleMaps())],
        tool_config=tool_config,
    )


def _grounding_references(response) -> list[GroundingReference]:
    """Collect the grounding chunks of the first candidate, maps and web alike."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    references: list[GroundingReference] = []
    for chunk in chunks:
        for source in ("maps", "web"):
            ref = getattr(chunk, source, None)
            if ref is not None:
                references.append(GroundingReference(
                    source=source,
                    uri=getattr(ref, "uri", None) or "",
                    title=getattr(ref, "title", None) or "",
                ))
                break
    return references


class ItineraryAgent:
    """Text + Google Maps grounding call producing the narrative itinerary."""

    def __init__(self, client: genai.Client, model: str | None = None):
        self._client = client
        self.model = model or os.getenv("ITINERARY_MODEL", DEFAULT_MODEL)

    async def generate(self, query: TripQuery) -> Itinerary:
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=_build_prompt(query),
                config=_build_config(query),
            )
            text = response.text
            if not text:
                raise ServiceError(EMPTY_RESPONSE)
            return Itinerary(text=text, references=_grounding_references(response))
        except Exception as exc:
            logger.error("Error generating trip plan: %s", exc)
            raise ServiceError(f"Failed to generate trip plan: {exc}") from exc

import sys
import os
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

# Project root: TripQuery, TripPlan, errors, main and agents live there
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from TripQuery import LatLng, TripQuery
from agents.ItineraryAgent import GroundingReference, Itinerary
from agents.planning_agent import TripPlanner
from errors import ServiceError

SAMPLE_ITINERARY = (
    "Start your drive south with a few detours.\n\n"
    "**Mystery Spot**\nA gravity-defying cabin in the redwoods.\n\n"
    "**Madonna Inn**\nPink everything, including the steaks."
)

MAPS_REFERENCES = [
    GroundingReference(source="maps", uri="https://maps.google.com/?cid=1", title="Mystery Spot"),
    GroundingReference(source="web", uri="https://example.com/guide", title="Road trip guide"),
    GroundingReference(source="maps", uri="https://maps.google.com/?cid=2", title="Madonna Inn"),
    GroundingReference(source="maps", uri="https://maps.google.com/?cid=3", title="Hearst Castle"),
]


def data_uri(title: str) -> str:
    return f"data:image/png;base64,{title}"


@pytest.fixture
def query():
    return TripQuery(
        source="San Francisco, CA",
        destination="Los Angeles, CA",
        interests="quirky roadside attractions",
    )


@pytest.fixture
def located_query():
    return TripQuery(
        source="San Francisco, CA",
        destination="Los Angeles, CA",
        interests="quirky roadside attractions",
        user_location=LatLng(latitude=37.77, longitude=-122.42),
    )


@pytest.fixture
def itinerary_agent():
    agent = MagicMock()
    agent.model = "fake-text"
    agent.generate = AsyncMock(return_value=Itinerary(text=SAMPLE_ITINERARY, references=list(MAPS_REFERENCES)))
    return agent


@pytest.fixture
def image_agent():
    agent = MagicMock()
    agent.model = "fake-image"

    async def generate(title):
        await asyncio.sleep(0)
        return data_uri(title)

    agent.generate = AsyncMock(side_effect=generate)
    return agent


@pytest.fixture
def failing_itinerary_agent():
    agent = MagicMock()
    agent.model = "fake-text"
    agent.generate = AsyncMock(side_effect=ServiceError("Failed to generate trip plan: quota exceeded"))
    return agent


@pytest.fixture
def planner(itinerary_agent, image_agent):
    return TripPlanner(itinerary_agent, image_agent)

"""
Trip Planner orchestration

Two chained calls to the generative-AI service:

  1. Itinerary generation  → 1 text call with Google Maps grounding
  2. Image enrichment      → 1 image call per suggested stop, all concurrent

Step 1 is awaited by the caller. Step 2 is started once the plan is shown and
never awaited by the request: each task writes its own stop back into the
shared PlanState when it finishes, in whatever order the images arrive.

Every plan carries the generation it was started under. A resubmission bumps
the generation, so image tasks that still belong to the previous plan find
their writes rejected instead of landing on the new plan's stops.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from errors import ServiceError, UnknownError, ValidationError
from TripPlan import PlaceReference, TripPlan
from TripQuery import TripQuery

from .ImageAgent import ImageAgent
from .ItineraryAgent import ItineraryAgent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared plan state
# ---------------------------------------------------------------------------

class PlanState:
    """The displayed plan plus the listeners watching it.

    All mutation happens on the event loop thread, so no locking is needed.
    Writes are addressed by (generation, entry id) and applied to whatever
    plan is current at the moment of the write.
    """

    def __init__(self):
        self.plan: Optional[TripPlan] = None
        self.error: Optional[str] = None
        self.loading = False
        self.generation = 0
        self._listeners: set[asyncio.Queue] = set()

    # -- listeners ----------------------------------------------------------

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._listeners.discard(queue)

    def _publish(self, event: Dict[str, Any]) -> None:
        for queue in list(self._listeners):
            queue.put_nowait(event)

    # -- planning lifecycle -------------------------------------------------

    def begin(self) -> int:
        """Start a new planning attempt; the previous plan is cleared."""
        self.generation += 1
        self.plan = None
        self.error = None
        self.loading = True
        self._publish({"type": "reset", "generation": self.generation})
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def install(self, plan: TripPlan) -> bool:
        if not self.is_current(plan.generation):
            logger.debug("Discarding plan from superseded generation %s", plan.generation)
            return False
        self.plan = plan
        self.loading = False
        self._publish({"type": "plan", "generation": plan.generation, "plan": plan.to_dict()})
        return True

    def fail(self, generation: int, message: str) -> bool:
        if not self.is_current(generation):
            return False
        self.plan = None
        self.error = message
        self.loading = False
        self._publish({"type": "error", "generation": generation, "message": message})
        return True

    # -- per-location updates -----------------------------------------------

    def _update(self, generation: int, entry_id: str, apply) -> bool:
        if not self.is_current(generation) or self.plan is None:
            logger.debug("Dropping stale write for %s (generation %s, current %s)",
                         entry_id, generation, self.generation)
            return False
        entry = self.plan.entry(entry_id)
        if entry is None or not apply(entry):
            return False
        self._publish({"type": "location", "generation": generation, "location": entry.to_dict()})
        return True

    def mark_loading(self, generation: int, entry_id: str) -> bool:
        return self._update(generation, entry_id, lambda e: e.start_loading())

    def settle(self, generation: int, entry_id: str, image_url: Optional[str] = None) -> bool:
        return self._update(generation, entry_id, lambda e: e.settle(image_url))

    def snapshot(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "loading": self.loading,
            "error": self.error,
            "plan": self.plan.to_dict() if self.plan else None,
        }


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class TripPlanner:
    """Runs the itinerary call, then fans out one image task per stop."""

    def __init__(self, itinerary_agent: ItineraryAgent, image_agent: ImageAgent,
                 state: Optional[PlanState] = None):
        self.itinerary_agent = itinerary_agent
        self.image_agent = image_agent
        self.state = state or PlanState()
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def plan(self, query: TripQuery, generation: int = 0) -> TripPlan:
        """Generate the itinerary and its stops. Images are not fetched here."""
        query.validate()
        itinerary = await self.itinerary_agent.generate(query)
        if not itinerary.text:
            raise ServiceError("Failed to generate trip plan: empty itinerary")

        places = [
            PlaceReference(uri=ref.uri, title=ref.title)
            for ref in itinerary.references
            if ref.source == "maps"
        ]
        return TripPlan.from_places(itinerary.text, places, generation=generation)

    def enrich(self, plan: TripPlan) -> list[asyncio.Task]:
        """Start one image task per stop of an installed plan.

        Every stop is marked loading before this returns.
        """
        tasks = []
        for entry in plan.locations:
            if not self.state.mark_loading(plan.generation, entry.id):
                continue
            task = asyncio.create_task(
                self._fetch_image(plan.generation, entry.id, entry.title),
                name=f"image:{entry.id}",
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            tasks.append(task)
        return tasks

    async def _fetch_image(self, generation: int, entry_id: str, title: str) -> None:
        try:
            image_url = await self.image_agent.generate(title)
        except Exception as exc:
            logger.warning("Failed to load image for %s: %s", title, exc)
            self.state.settle(generation, entry_id)
            return
        self.state.settle(generation, entry_id, image_url)

    async def drain(self) -> None:
        """Wait until every enrichment task started so far has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def submit(self, query: TripQuery) -> TripPlan:
        """Validate, plan, show and enrich: one form submission.

        The returned plan is only displayed while its generation is current.
        If a newer submission has begun, the plan is neither installed nor
        enriched, and once superseded every write addressed to it is
        discarded. Entries already marked loading on such a plan stay
        loading; callers should read ``state.plan`` rather than keep it.
        """
        query.validate()
        generation = self.state.begin()
        try:
            plan = await self.plan(query, generation)
        except (ServiceError, ValidationError) as exc:
            self.state.fail(generation, str(exc))
            raise
        except Exception as exc:
            logger.exception("Unexpected error while planning")
            error = UnknownError()
            self.state.fail(generation, str(error))
            raise error from exc

        if self.state.install(plan):
            self.enrich(plan)
        return plan

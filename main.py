"""FastAPI Backend - AI Trip Planner with Gemini grounding and image generation"""
import os
import json
import logging
from contextlib import asynccontextmanager

# Load .env before anything else
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from typing import Optional

from google import genai

from agents.ImageAgent import ImageAgent
from agents.ItineraryAgent import ItineraryAgent
from agents.planning_agent import TripPlanner
from errors import ServiceError, UnknownError, ValidationError
from itinerary_text import split_itinerary
from TripQuery import LatLng, TripQuery

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
FRONTEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "frontend")


def _api_key() -> str:
    key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    if not key:
        raise RuntimeError("GEMINI_API_KEY environment variable is not set.")
    return key


def build_planner() -> TripPlanner:
    """Wire one genai client into both service adapters."""
    client = genai.Client(api_key=_api_key())
    return TripPlanner(ItineraryAgent(client), ImageAgent(client))


# Pydantic models
class PlanRequest(BaseModel):
    source: str = ""
    destination: str = ""
    interests: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_query(self) -> TripQuery:
        location = None
        if self.latitude is not None and self.longitude is not None:
            location = LatLng(latitude=self.latitude, longitude=self.longitude)
        return TripQuery(
            source=self.source,
            destination=self.destination,
            interests=self.interests,
            user_location=location,
        )


def _with_sections(snapshot: dict) -> dict:
    plan = snapshot.get("plan")
    snapshot["sections"] = split_itinerary(plan["itinerary"]) if plan else []
    return snapshot


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event, default=str)}\n\n"


def create_app(planner: Optional[TripPlanner] = None) -> FastAPI:
    """Build the API. Pass *planner* to inject fake adapters."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "planner", None) is None:
            app.state.planner = build_planner()
        planner = app.state.planner
        logger.info("Trip planner ready (itinerary model %s, image model %s)",
                    planner.itinerary_agent.model, planner.image_agent.model)
        yield

    app = FastAPI(
        title="AI Trip Planner API",
        description="Grounded road-trip itineraries with generated stop photos",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.planner = planner

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if os.path.isdir(FRONTEND_DIR):
        app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")

    def _planner(request: Request) -> TripPlanner:
        return request.app.state.planner

    @app.get("/", include_in_schema=False)
    def index():
        return FileResponse(os.path.join(FRONTEND_DIR, "index.html"))

    @app.post("/plan")
    async def create_plan(body: PlanRequest, request: Request):
        """Generate the itinerary; stop images keep loading in the background."""
        planner = _planner(request)
        try:
            await planner.submit(body.to_query())
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ServiceError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except UnknownError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return _with_sections(planner.state.snapshot())

    @app.get("/plan")
    def get_plan(request: Request):
        return _with_sections(_planner(request).state.snapshot())

    @app.get("/plan/stream")
    async def stream_plan(request: Request):
        """SSE endpoint - streams plan and per-stop image updates as they happen."""
        state = _planner(request).state
        queue = state.subscribe()

        async def event_generator():
            try:
                yield _sse({"type": "snapshot", **_with_sections(state.snapshot())})
                while True:
                    event = await queue.get()
                    if event["type"] == "plan":
                        event = {**event, "sections": split_itinerary(event["plan"]["itinerary"])}
                    yield _sse(event)
            finally:
                state.unsubscribe(queue)

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    # Health check
    @app.get("/health")
    def health_check(request: Request):
        planner = _planner(request)
        return {
            "status": "ok",
            "version": VERSION,
            "itinerary_model": planner.itinerary_agent.model,
            "image_model": planner.image_agent.model,
            "pending_images": planner.pending,
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))

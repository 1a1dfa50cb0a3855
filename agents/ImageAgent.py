import base64
import logging
import os

from google import genai
from google.genai import types

from errors import ServiceError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"


def _build_prompt(place_name: str) -> str:
    return (
        f"A beautiful, high-quality photograph of {place_name}. "
        "Focus on its most iconic feature."
    )


def _first_inline_image(response) -> tuple[bytes, str] | None:
    """Return (raw bytes, mime type) of the first inline-data part, if any."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline and getattr(inline, "data", None):
            return inline.data, getattr(inline, "mime_type", None) or "image/png"
    return None


def to_data_uri(data: bytes | str, mime: str = "image/png") -> str:
    # The SDK normally hands back decoded bytes; a str is already base64.
    if isinstance(data, bytes):
        data = base64.standard_b64encode(data).decode("utf-8")
    return f"data:{mime};base64,{data}"


class ImageAgent:
    """Image-modality call producing one illustrative photo per place."""

    def __init__(self, client: genai.Client, model: str | None = None):
        self._client = client
        self.model = model or os.getenv("IMAGE_MODEL", DEFAULT_MODEL)

    async def generate(self, place_name: str) -> str:
        """Return a displayable data URI for *place_name*.

        Raises ServiceError when the call fails or the response carries no
        inline image.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=_build_prompt(place_name),
                config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
            )
            image = _first_inline_image(response)
            if image is None:
                raise ServiceError("No image data found in response.")
            data, mime = image
            return to_data_uri(data, mime)
        except Exception as exc:
            logger.error("Error generating image for %s: %s", place_name, exc)
            raise ServiceError(f"Failed to generate image for {place_name}.") from exc

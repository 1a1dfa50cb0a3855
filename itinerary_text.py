"""Split itinerary text on its **bold** section titles."""
import re

_BOLD_RUN = re.compile(r"(\*\*.*?\*\*)")


def split_itinerary(text: str) -> list[dict]:
    """Return ``{"kind": "heading" | "body", "text": ...}`` sections in order.

    A ``**...**`` run becomes a heading with its markers removed. Everything
    between headings is body text. Blank pieces are dropped.
    """
    sections: list[dict] = []
    for part in _BOLD_RUN.split(text or ""):
        if len(part) >= 4 and part.startswith("**") and part.endswith("**"):
            title = part[2:-2].strip()
            if title:
                sections.append({"kind": "heading", "text": title})
        elif part.strip():
            sections.append({"kind": "body", "text": part.strip()})
    return sections

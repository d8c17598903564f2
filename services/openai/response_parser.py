"""Helpers to parse Responses API outputs."""

from typing import Any, Dict, Optional

from models.diagram_models import EncodedImage


def extract_first_image(response: Any, *, mime_type: str = "image/png") -> Optional[EncodedImage]:
    """Return the first generated image in output order, ignoring any others."""
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "image_generation_call":
            continue
        result = getattr(item, "result", None)
        if result:
            return EncodedImage(mime_type=mime_type, data=result)
    return None


def extract_text(response: Any) -> Optional[str]:
    """Join every output_text part from message items, or None when there is none."""
    parts = []
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            if getattr(content, "type", None) == "output_text":
                text = (getattr(content, "text", "") or "").strip()
                if text:
                    parts.append(text)
    return "\n".join(parts) if parts else None


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }

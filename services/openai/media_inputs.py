"""Utilities to build image generation payloads for the Responses API."""

from typing import Any, Dict, List

from models.diagram_models import EncodedImage

OUTPUT_MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg", "webp": "image/webp"}


def build_inputs(image: EncodedImage, prompt_text: str) -> List[Dict[str, Any]]:
    """Build the Responses API input array: the base image followed by the instruction."""
    return [
        {
            "type": "message",
            "role": "user",
            "content": [
                {"type": "input_image", "image_url": image.to_data_url()},
                {"type": "input_text", "text": prompt_text},
            ],
        }
    ]


def build_image_tool(output_format: str = "png") -> Dict[str, Any]:
    """Return the image generation tool definition for the requested output format."""
    if output_format not in OUTPUT_MIME_TYPES:
        raise ValueError(
            f"Unsupported image format '{output_format}'. Supported: {', '.join(OUTPUT_MIME_TYPES)}"
        )
    return {"type": "image_generation", "output_format": output_format}

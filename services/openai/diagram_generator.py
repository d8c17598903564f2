"""Diagram refinement and editing via the OpenAI Responses API image generation tool.

Both operations send one request holding the base image and an instruction,
then take the first image the model returns. When the model answers with text
only (typically explaining why it would not draw), that text is surfaced in
the raised `GenerationError` so the user sees the model's reasoning.
"""

import logging
import time
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from models.diagram_models import EncodedImage
from models.errors import GenerationError
from services.openai.diagram_prompts import REFINE_PROMPT, build_edit_prompt
from services.openai.media_inputs import OUTPUT_MIME_TYPES, build_image_tool, build_inputs
from services.openai.response_parser import extract_first_image, extract_text, extract_usage
from utils.config import IMAGE_FORMAT, IMAGE_MODEL

LOGGER = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image was found in the AI's response."


class DiagramGenerator:
    """Refine sketches and apply edit instructions with an image-capable model."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = IMAGE_MODEL,
        output_format: str = IMAGE_FORMAT,
    ) -> None:
        """Initialize the generator with a shared OpenAI async client.

        Args:
            client: Async OpenAI client from application state.
            model: Responses model that drives the image generation tool.
            output_format: Image format requested from the tool (png, jpeg or webp).

        Raises:
            ValueError: If the client is missing or the format is unsupported.
        """
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.tool = build_image_tool(output_format)
        self.mime_type = OUTPUT_MIME_TYPES[output_format]

    async def refine(self, image: EncodedImage) -> EncodedImage:
        """Return a cleaned-up version of a hand-drawn sketch."""
        return await self._generate(image, REFINE_PROMPT, operation="refine")

    async def edit(self, image: EncodedImage, instruction: str) -> EncodedImage:
        """Return `image` changed according to the user's instruction."""
        prompt_text = build_edit_prompt(instruction or "")
        if not prompt_text:
            raise ValueError("An edit instruction is required.")
        return await self._generate(image, prompt_text, operation="edit")

    async def _generate(self, image: EncodedImage, prompt_text: str, *, operation: str) -> EncodedImage:
        start_time = time.time()
        response = await self._create_response(image, prompt_text)

        result = extract_first_image(response, mime_type=self.mime_type)
        commentary = extract_text(response)
        if result is None:
            LOGGER.warning("No image returned for %s; model commentary: %r", operation, commentary)
            message = f'The AI responded: "{commentary}"' if commentary else NO_IMAGE_MESSAGE
            raise GenerationError(message, commentary=commentary)

        usage = extract_usage(response)
        LOGGER.info(
            "Diagram %s latency: %.3fs (input_tokens=%s, output_tokens=%s)",
            operation,
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return result

    async def _create_response(self, image: EncodedImage, prompt_text: str) -> Any:
        """Send the single generation request; service failures become GenerationError."""
        try:
            return await self.client.responses.create(
                model=self.model,
                input=build_inputs(image, prompt_text),
                tools=[self.tool],
            )
        except OpenAIError as exc:
            logging.error("Error during OpenAI Responses API call: %s", exc)
            message = getattr(exc, "message", None) or str(exc)
            raise GenerationError(message) from exc

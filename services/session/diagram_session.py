"""Refine/edit state machine for one diagramming task.

A session moves images through three stages: the user's original sketch, the
refined diagram produced right after the sketch arrives, and the edited
diagram that every accepted instruction replaces. Only one generation call may
be in flight per session. Each call is described by a `GenerationTicket`
whose epoch must still match the session's when the response arrives;
`reset()` and a new original both advance the epoch, so late responses from an
abandoned task are dropped instead of applied.

All guards and phase changes run without an intervening `await`, which makes
them atomic on the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from models.diagram_models import DiagramState, EncodedImage, GenerationTicket, SessionPhase
from models.errors import GenerationError

LOGGER = logging.getLogger(__name__)

REFINE_FAILURE_PREFIX = "Failed to refine diagram."
EDIT_FAILURE_PREFIX = "Failed to edit diagram."
READ_FAILURE_MESSAGE = "Failed to read the file."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


def _error_message(exc: BaseException) -> str:
	return str(exc) or UNKNOWN_ERROR_MESSAGE


class DiagramSession:
	"""Own the original -> refined -> edited pipeline of a single task.

	Args:
		generator: Object exposing async `refine(image)` and
			`edit(image, instruction)` that return an `EncodedImage`.
		session_id: Optional identifier; a random hex id is used otherwise.
	"""

	def __init__(self, generator: Any, session_id: Optional[str] = None) -> None:
		if generator is None:
			raise ValueError("A generation client is required.")
		self.generator = generator
		self.state = DiagramState(session_id=session_id or uuid4().hex)

	@property
	def session_id(self) -> str:
		return self.state.session_id

	@property
	def busy(self) -> bool:
		return self.state.phase is not SessionPhase.IDLE

	# Transitions

	def set_original(self, image: EncodedImage) -> Optional[GenerationTicket]:
		"""Start a task from a new sketch and begin refining it in the same step.

		Returns the refine ticket, or None when the session is busy or `image`
		equals the current original (which must not refine twice).
		"""
		if self.busy:
			LOGGER.debug("Session %s: new original rejected while %s", self.session_id, self.state.phase.value)
			return None
		if self.state.original == image:
			LOGGER.debug("Session %s: original unchanged, not refining again", self.session_id)
			return None

		state = self.state
		state.epoch += 1
		state.original = image
		state.refined = None
		state.edited = None
		state.last_error = None
		return self._begin_refine()

	def begin_refine(self) -> Optional[GenerationTicket]:
		"""Retry refinement of the current original after a failed attempt."""
		if self.state.original is None or self.busy:
			return None
		if self.state.refined is not None:
			LOGGER.debug("Session %s: already refined; refined image is never replaced", self.session_id)
			return None
		return self._begin_refine()

	def begin_edit(self, instruction: Optional[str]) -> Optional[GenerationTicket]:
		"""Begin an edit of the latest diagram.

		Blank instructions, a session without a refined diagram, or a busy
		session are rejected silently (None is returned, nothing changes).
		"""
		text = (instruction or "").strip()
		if not text:
			return None
		if self.state.refined is None:
			LOGGER.debug("Session %s: edit rejected before refinement", self.session_id)
			return None
		if self.busy:
			LOGGER.debug("Session %s: edit rejected while %s", self.session_id, self.state.phase.value)
			return None

		state = self.state
		base = state.edited or state.refined
		state.phase = SessionPhase.EDITING
		state.last_error = None
		state.pending_instruction = ""
		return GenerationTicket(phase=SessionPhase.EDITING, epoch=state.epoch, base=base, instruction=text)

	def reset(self) -> None:
		"""Discard every stage; responses still in flight become stale."""
		state = self.state
		state.epoch += 1
		state.original = None
		state.refined = None
		state.edited = None
		state.phase = SessionPhase.IDLE
		state.last_error = None
		state.pending_instruction = ""
		state.listening = False

	def record_read_failure(self, message: str = READ_FAILURE_MESSAGE) -> None:
		"""Show a source-read failure without disturbing an in-flight call."""
		if not self.busy:
			self.state.last_error = message

	def _begin_refine(self) -> GenerationTicket:
		state = self.state
		state.phase = SessionPhase.REFINING
		state.last_error = None
		return GenerationTicket(phase=SessionPhase.REFINING, epoch=state.epoch, base=state.original)

	# Completion

	def is_current(self, ticket: GenerationTicket) -> bool:
		return ticket.epoch == self.state.epoch and ticket.phase is self.state.phase

	async def run(self, ticket: GenerationTicket) -> bool:
		"""Perform the generation call for `ticket` and apply its outcome.

		Returns True when a successful result was applied to the session.
		"""
		try:
			if ticket.phase is SessionPhase.REFINING:
				result = await self.generator.refine(ticket.base)
			else:
				result = await self.generator.edit(ticket.base, ticket.instruction)
		except asyncio.CancelledError:
			if self.is_current(ticket):
				self.state.phase = SessionPhase.IDLE
			raise
		except GenerationError as exc:
			self._fail(ticket, _error_message(exc))
			return False
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.exception("Session %s: unexpected generation failure", self.session_id)
			self._fail(ticket, _error_message(exc))
			return False
		return self._succeed(ticket, result)

	def _succeed(self, ticket: GenerationTicket, result: EncodedImage) -> bool:
		if not self.is_current(ticket):
			LOGGER.info("Session %s: discarding stale %s response", self.session_id, ticket.phase.value)
			return False
		state = self.state
		if ticket.phase is SessionPhase.REFINING:
			state.refined = result
		state.edited = result
		state.phase = SessionPhase.IDLE
		return True

	def _fail(self, ticket: GenerationTicket, message: str) -> None:
		if not self.is_current(ticket):
			LOGGER.info("Session %s: discarding stale %s failure: %s", self.session_id, ticket.phase.value, message)
			return
		prefix = REFINE_FAILURE_PREFIX if ticket.phase is SessionPhase.REFINING else EDIT_FAILURE_PREFIX
		LOGGER.warning("Session %s: %s %s", self.session_id, prefix, message)
		self.state.last_error = f"{prefix} {message}"
		self.state.phase = SessionPhase.IDLE

	# One-call helpers

	async def provide_image(self, image: EncodedImage) -> bool:
		"""Set the original and await its refinement. False when rejected."""
		ticket = self.set_original(image)
		if ticket is None:
			return False
		await self.run(ticket)
		return True

	async def refine(self) -> bool:
		ticket = self.begin_refine()
		if ticket is None:
			return False
		await self.run(ticket)
		return True

	async def edit(self, instruction: Optional[str]) -> bool:
		ticket = self.begin_edit(instruction)
		if ticket is None:
			return False
		await self.run(ticket)
		return True

	# Voice transcripts

	def start_listening(self) -> None:
		self.state.listening = True

	def stop_listening(self) -> None:
		self.state.listening = False

	def propose_instruction(self, text: str) -> bool:
		"""Overwrite the pending instruction with the latest transcript."""
		text = (text or "").strip()
		if not text:
			return False
		self.state.pending_instruction = text
		return True

	# Presentation

	def snapshot(self) -> Dict[str, Any]:
		"""Return the presentation view of the session."""
		state = self.state
		return {
			"session_id": state.session_id,
			"phase": state.phase.value,
			"original": state.original.to_data_url() if state.original else None,
			"refined": state.refined.to_data_url() if state.refined else None,
			"edited": state.edited.to_data_url() if state.edited else None,
			"last_error": state.last_error,
			"downloadable": state.downloadable,
			"pending_instruction": state.pending_instruction,
			"listening": state.listening,
		}

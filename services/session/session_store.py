"""Simple in-memory store for diagram sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Set

from models.diagram_models import GenerationTicket
from services.session.diagram_session import DiagramSession

LOGGER = logging.getLogger(__name__)


class SessionStore:
	"""Create, look up and discard diagram sessions.

	The store also keeps references to generation calls scheduled in the
	background so they are not garbage collected mid-flight and can be
	cancelled on shutdown.
	"""

	def __init__(self, generator: Any) -> None:
		self.generator = generator
		self._sessions: Dict[str, DiagramSession] = {}
		self._tasks: Set[asyncio.Task] = set()

	def create(self) -> DiagramSession:
		"""Create a fresh session for a new diagramming task."""
		session = DiagramSession(self.generator)
		self._sessions[session.session_id] = session
		return session

	def get(self, session_id: str) -> DiagramSession:
		"""Return a session or raise KeyError if missing."""
		session = self._sessions.get(session_id)
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		return session

	def discard(self, session_id: str) -> None:
		"""Drop a session entirely; its in-flight responses are ignored."""
		session = self.get(session_id)
		session.reset()
		del self._sessions[session_id]

	def __len__(self) -> int:
		return len(self._sessions)

	def schedule(self, session: DiagramSession, ticket: GenerationTicket) -> asyncio.Task:
		"""Run a generation call without awaiting it."""
		task = asyncio.create_task(session.run(ticket))
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return task

	async def shutdown(self) -> None:
		"""Cancel background generation calls that are still running."""
		tasks = list(self._tasks)
		for task in tasks:
			task.cancel()
		if tasks:
			LOGGER.info("Cancelled %d pending generation call(s)", len(tasks))
			await asyncio.gather(*tasks, return_exceptions=True)
		self._sessions.clear()

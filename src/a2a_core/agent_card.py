"""
A2A Agent Card Generation

Builds the discovery document from the capabilities registered on a
:class:`~a2a_core.registry.MethodRegistry` and caches it for the lifetime of
the server.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .models import AgentCard, TransportProtocol
from .registry import MethodRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentIdentity:
    """Descriptive fields of an agent card that do not come from the registry."""

    name: str
    description: str
    version: str
    url: str
    streaming: bool = False
    default_input_modes: tuple = ("text/plain",)
    default_output_modes: tuple = ("text/plain",)


class AgentCardGenerator:
    """
    Generates AgentCard objects from registered capabilities.

    Registration is finished before the server starts, so the first generated
    card is cached and served until :meth:`refresh` is called.
    """

    def __init__(self, registry: MethodRegistry, identity: AgentIdentity):
        self.registry = registry
        self.identity = identity
        self._card: Optional[AgentCard] = None
        self._lock = threading.Lock()

    def generate_agent_card(self) -> AgentCard:
        """
        Generate a fresh AgentCard.

        Raises:
            ValueError: two capabilities share a skill id.
        """
        identity = self.identity
        card = AgentCard.from_capabilities(
            self.registry.capabilities(),
            name=identity.name,
            description=identity.description or f"A2A agent '{identity.name}'",
            version=identity.version,
            url=identity.url,
            streaming=identity.streaming,
            preferred_transport=TransportProtocol.JSONRPC,
            default_input_modes=list(identity.default_input_modes),
            default_output_modes=list(identity.default_output_modes),
        )

        logger.info("Generated AgentCard",
                    extra={"agent_name": card.name, "skills_count": len(card.skills)})
        return card

    def get_agent_card(self, use_cache: bool = True) -> AgentCard:
        """Return the cached card, generating it on first use."""
        with self._lock:
            if use_cache and self._card is not None:
                return self._card
            card = self.generate_agent_card()
            self._card = card
            return card

    def refresh(self) -> AgentCard:
        """Drop the cached card and generate a new one."""
        return self.get_agent_card(use_cache=False)

    def update_identity(self, identity: AgentIdentity) -> None:
        """Swap the descriptive fields; the next request regenerates the card."""
        with self._lock:
            self.identity = identity
            self._card = None

"""Broadcast gateway: fan-out of server messages to attached connections.

Each connection registers a sink, a plain callable that accepts one server
message. The WebSocket transport uses ``asyncio.Queue.put_nowait`` so that
sends never block an engine handler; tests can register ``list.append``.
Because there is one producer and every sink is a FIFO, all recipients see
messages in the order they were produced.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from pydantic import BaseModel

from .protocol import GameStateMessage
from .state import GameState

__all__ = ["MessageSink", "BroadcastGateway"]

logger = logging.getLogger(__name__)

MessageSink = Callable[[BaseModel], None]


class BroadcastGateway:
    """Registry of connection sinks with unicast and broadcast delivery."""

    def __init__(self) -> None:
        self._sinks: Dict[str, MessageSink] = {}

    def attach(self, connection_id: str, sink: MessageSink) -> None:
        self._sinks[connection_id] = sink

    def detach(self, connection_id: str) -> None:
        self._sinks.pop(connection_id, None)

    def is_attached(self, connection_id: str) -> bool:
        return connection_id in self._sinks

    @property
    def connection_ids(self) -> List[str]:
        return list(self._sinks)

    def send(self, connection_id: str, message: BaseModel) -> None:
        sink = self._sinks.get(connection_id)
        if sink is None:
            logger.debug("Dropping %s for detached connection %s", type(message).__name__, connection_id)
            return
        sink(message)

    def broadcast(self, message: BaseModel) -> None:
        for sink in list(self._sinks.values()):
            sink(message)

    def send_state(self, connection_id: str, state: GameState) -> None:
        self.send(connection_id, GameStateMessage(data=state.to_snapshot()))

    def broadcast_state(self, state: GameState) -> None:
        """Push one full snapshot, shared by every recipient."""
        self.broadcast(GameStateMessage(data=state.to_snapshot()))

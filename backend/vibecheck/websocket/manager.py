# vibecheck/websocket/manager.py
from fastapi import WebSocket, WebSocketDisconnect
from typing import Dict, Set
import enum
import logging

logger = logging.getLogger(__name__)

class SessionEvent(str, enum.Enum):
    """Event kinds pushed to session channels"""
    PARTICIPANT_JOINED = "participant_joined"
    QUESTIONS_READY = "questions_ready"
    ANSWER_SUBMITTED = "answer_submitted"
    RESULTS_READY = "results_ready"

def session_channel(session_id: str) -> str:
    return f"session:{session_id}"

class ConnectionManager:
    """
    String-keyed multicast groups of WebSocket connections.

    Channels appear on first subscribe and vanish when their last
    subscriber leaves. Delivery is best effort: nothing is stored for
    clients that connect later.
    """

    def __init__(self):
        # Map: channel -> Set of WebSocket connections
        self.channels: Dict[str, Set[WebSocket]] = {}

    def subscribe(self, channel: str, connection: WebSocket):
        """Register a connection on a channel"""
        self.channels.setdefault(channel, set()).add(connection)
        logger.info(f"[WebSocket] Client subscribed to {channel} "
                    f"(Total: {len(self.channels[channel])} clients)")

    def unsubscribe(self, channel: str, connection: WebSocket):
        """Remove a connection from a channel"""
        if channel in self.channels:
            self.channels[channel].discard(connection)

            # Clean up empty channels
            if not self.channels[channel]:
                del self.channels[channel]

            logger.info(f"[WebSocket] Client unsubscribed from {channel}")

    def unsubscribe_all(self, connection: WebSocket):
        """Drop a connection from every channel (on disconnect)"""
        for channel in list(self.channels.keys()):
            if connection in self.channels.get(channel, ()):
                self.unsubscribe(channel, connection)

    async def publish(self, channel: str, event: SessionEvent, data: dict):
        """Send an event to every connection subscribed to a channel"""
        if channel not in self.channels:
            return

        message = {"event": SessionEvent(event).value, "data": data}

        # Snapshot of connections (to avoid modification during iteration)
        connections = list(self.channels[channel])

        disconnected = []
        for connection in connections:
            try:
                await connection.send_json(message)
            except WebSocketDisconnect:
                disconnected.append(connection)
                logger.warning("[WebSocket] Client disconnected during send")
            except Exception as e:
                disconnected.append(connection)
                logger.error(f"[WebSocket] Error sending {message['event']}: {e}")

        for conn in disconnected:
            self.unsubscribe(channel, conn)

    def get_connection_count(self, channel: str = None) -> int:
        """Get count of subscribed connections"""
        if channel:
            return len(self.channels.get(channel, set()))
        return sum(len(conns) for conns in self.channels.values())

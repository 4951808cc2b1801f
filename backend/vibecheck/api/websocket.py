# vibecheck/api/websocket.py
from fastapi import APIRouter, WebSocket
from ..websocket.manager import session_channel
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket):
    """
    WebSocket endpoint for session events.

    Clients announce interest in a session and then receive its events:
        {"type": "join_session", "sessionId": "abc123xy"}
        {"type": "leave_session", "sessionId": "abc123xy"}

    Pushed message format:
    {
        "event": "participant_joined" | "questions_ready" | "answer_submitted" | "results_ready",
        "data": {...}
    }

    Nothing is replayed; a client that joins late re-reads the session
    over HTTP to catch up.
    """
    notifier = websocket.app.state.notifier
    await websocket.accept()

    try:
        while True:
            try:
                frame = await websocket.receive()
            except Exception as e:
                logger.error(f"[WebSocket] Error receiving message: {e}")
                break

            if frame["type"] == "websocket.disconnect":
                logger.info("[WebSocket] Client disconnected")
                break

            data = frame.get("text")
            if data is None:
                logger.warning("[WebSocket] Ignoring binary frame")
                continue

            if data == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            try:
                message = json.loads(data)
            except ValueError:
                logger.warning("[WebSocket] Ignoring non-JSON message")
                continue

            session_id = message.get("sessionId") if isinstance(message, dict) else None
            if not isinstance(session_id, str) or not session_id:
                continue

            channel = session_channel(session_id)
            if message.get("type") == "join_session":
                notifier.subscribe(channel, websocket)
                logger.info(f"[WebSocket] {channel} now has {notifier.get_connection_count(channel)} listener(s)")
                await websocket.send_json({"type": "subscribed", "sessionId": session_id})
            elif message.get("type") == "leave_session":
                notifier.unsubscribe(channel, websocket)

    finally:
        # Clean up subscriptions
        notifier.unsubscribe_all(websocket)

#taskhub/api/websocket.py
import json
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from taskhub.core.security import principal_from_token
from taskhub.realtime.manager import broadcaster

router = APIRouter()
logger = logging.getLogger("TaskHub.Realtime")

@router.websocket("/ws")
async def events_ws(websocket: WebSocket, token: Optional[str] = None):
    """
    Канал событий. Без token — анонимная сессия (получает общие рассылки),
    с валидным token — сессия регистрируется за пользователем, с невалидным — 1008.
    """
    user_id = None
    if token is not None:
        principal = principal_from_token(token)
        if principal is None:
            await websocket.close(code=1008)
            return
        user_id = principal.user_id

    await broadcaster.connect(websocket, user_id=user_id)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)

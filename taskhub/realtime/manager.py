#taskhub/realtime/manager.py
"""
Рассылка доменных событий всем подключённым WebSocket-сессиям.

emit() можно вызывать и из event loop, и из sync-эндпоинта (поток пула):
во втором случае отправка планируется в loop через anyio.from_thread.
Доставка best-effort: упавший сокет удаляется, ошибка только логируется.
"""

import asyncio
import logging
import weakref
from collections import defaultdict
from typing import Any, Optional

import anyio
import anyio.from_thread
from fastapi import WebSocket

logger = logging.getLogger("TaskHub.Realtime")


class ConnectionManager:
    def __init__(self) -> None:
        self.active_connections: set[WebSocket] = set()
        # user_id -> сессии пользователя; ссылки слабые, сокетом владеет active_connections
        self.sessions: dict[int, weakref.WeakSet] = defaultdict(weakref.WeakSet)
        self._pending: set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket, user_id: Optional[int] = None) -> None:
        # до завершения accept отправка в сокет невозможна, регистрируем после
        await websocket.accept()
        self.active_connections.add(websocket)
        if user_id is not None:
            self.sessions[user_id].add(websocket)
        logger.info(f"WebSocket connected (user_id={user_id}), total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)
        for user_id, sockets in list(self.sessions.items()):
            sockets.discard(websocket)
            if not sockets:
                del self.sessions[user_id]
        logger.info(f"WebSocket disconnected, total: {len(self.active_connections)}")

    def emit(self, event: str, payload: Any) -> None:
        """
        Отправить событие всем сессиям. Никогда не бросает исключений.
        """
        self._dispatch(list(self.active_connections), event, payload)

    def emit_to_user(self, user_id: int, event: str, payload: Any) -> None:
        """
        Отправить событие только сессиям указанного пользователя.
        """
        sockets = self.sessions.get(user_id)
        self._dispatch(list(sockets) if sockets else [], event, payload)

    def _dispatch(self, sockets: list, event: str, payload: Any) -> None:
        if not sockets:
            return
        message = {"event": event, "data": payload}
        try:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                # sync-код в потоке пула: планируем отправку в loop приложения
                anyio.from_thread.run_sync(self._schedule, sockets, message)
            else:
                self._schedule(sockets, message)
        except Exception as e:
            logger.error(f"Failed to emit '{event}': {e}", exc_info=True)
            return
        logger.debug(f"Emitted '{event}' to {len(sockets)} session(s)")

    def _schedule(self, sockets: list, message: dict) -> None:
        for ws in sockets:
            task = asyncio.create_task(self._safe_send(ws, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _safe_send(self, websocket: WebSocket, message: dict) -> None:
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.warning(f"Dropping WebSocket after failed send: {e}")
            self.disconnect(websocket)


broadcaster = ConnectionManager()

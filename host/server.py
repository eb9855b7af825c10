from __future__ import annotations

import asyncio
import json
import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Set

import websockets
from websockets.asyncio.server import ServerConnection, serve

from baccarat.clock import AsyncioScheduler, Scheduler
from baccarat.game import RoundEngine
from baccarat.models import TableConfig

LOGGER = logging.getLogger("baccarat_host")

# TableServer glues the round engine to WebSocket clients. Every network
# concern lives here; RoundEngine stays pure and calls back through the
# publish_* methods below.


@dataclass
class ClientSession:
    identity: str
    websocket: ServerConnection


class TableServer:
    def __init__(
        self,
        config: TableConfig,
        seed: Optional[int] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.engine = RoundEngine(config, self, scheduler or AsyncioScheduler(), rng=random.Random(seed))
        self.sessions: Dict[str, ClientSession] = {}
        self._tasks: Set[asyncio.Task] = set()

    async def start(self, host: str = "0.0.0.0", port: int = 3000) -> None:
        # serve keeps accepting clients until the process stops.
        async with serve(self._handle_connection, host, port):
            LOGGER.info("Baccarat table listening on %s:%s", host, port)
            self.engine.start()
            try:
                await asyncio.Future()
            finally:
                self.engine.stop()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        participant = self.engine.on_connect(uuid.uuid4().hex)
        session = ClientSession(identity=participant.identity, websocket=websocket)
        self.sessions[session.identity] = session
        LOGGER.info("Player connected: %s", session.identity)

        # The finally below releases the seat however the connection ends.
        try:
            await self._send_json(websocket, "welcome", {
                "id": participant.identity,
                "nickname": participant.display_name,
                "config": {
                    "betting_time": self.engine.config.betting_time,
                    "result_show_ms": self.engine.config.result_show_ms,
                    "starting_balance": self.engine.config.starting_balance,
                    "name_limit": self.engine.config.name_limit,
                },
            })
            await self._send_json(websocket, "game_update", self.engine.snapshot.to_dict())
            await self._send_json(websocket, "players_update", {"players": self.engine.ledger.snapshot()})
            await self._send_json(websocket, "timer_update", {"timer": self.engine.snapshot.timer})

            async for raw in websocket:
                message = self._decode(raw)
                if not message:
                    continue
                await self._handle_message(session, message)
        except websockets.ConnectionClosed:
            pass
        finally:
            self.sessions.pop(session.identity, None)
            self.engine.on_disconnect(session.identity)
            LOGGER.info("Player disconnected: %s", session.identity)

    async def _handle_message(self, session: ClientSession, message: Dict[str, object]) -> None:
        msg_type = message.get("type")
        if msg_type == "set_nickname":
            name = message.get("name")
            if not isinstance(name, str):
                await self._send_error(session.websocket, code="BAD_SCHEMA", msg="name must be a string")
                return
            self.engine.set_display_name(session.identity, name)
        elif msg_type == "place_bet":
            result = self.engine.place_wager(session.identity, message.get("side"), message.get("amount"))
            await self._send_json(session.websocket, "bet_result", result.to_dict())
        else:
            await self._send_error(session.websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")

    # Gateway ---------------------------------------------------------

    def publish_snapshot(self, snapshot: Dict[str, object]) -> None:
        self._spawn(self._broadcast("game_update", snapshot))

    def publish_timer(self, seconds: int) -> None:
        self._spawn(self._broadcast("timer_update", {"timer": seconds}))

    def publish_ledger(self, participants: Dict[str, Dict[str, object]]) -> None:
        self._spawn(self._broadcast("players_update", {"players": participants}))

    def _spawn(self, coro) -> None:
        # Engine callbacks are synchronous; sends run as tasks on the same loop.
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every queued broadcast to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _broadcast(self, msg_type: str, payload: Dict[str, object]) -> None:
        targets = [session.websocket for session in self.sessions.values()]
        if not targets:
            return
        message = self._envelope(msg_type, payload)
        await asyncio.gather(*(socket.send(message) for socket in targets), return_exceptions=True)

    async def _send_json(self, websocket: ServerConnection, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: ServerConnection, code: str, msg: str) -> None:
        await self._send_json(websocket, "error", {"code": code, "msg": msg})

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    def _decode(self, raw) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
            return {}
        return message if isinstance(message, dict) else {}

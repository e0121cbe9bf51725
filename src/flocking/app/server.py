from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import Dict, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import SimulationConfig
from ..sim.core.simulation import FlockSimulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    """Drives a simulation at its nominal time step and fans snapshots out to websocket clients.

    Every call into the simulation goes through ``asyncio.to_thread`` so a step
    holding the simulation lock never stalls the event loop. At most
    ``max_queued_snapshots`` unacknowledged snapshots are kept; older ones are
    dropped first.
    """

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, max_queued_snapshots: int = 120):
        self.config = config
        self.simulation = FlockSimulation(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=max(1, max_queued_snapshots))
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self._last_step_time: float | None = None

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
        self._last_step_time = None
        await asyncio.to_thread(self.simulation.start)

    async def stop(self) -> None:
        await asyncio.to_thread(self.simulation.stop)

    async def reset(self) -> None:
        await asyncio.to_thread(self.simulation.reset)
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def step_once(self) -> None:
        now = perf_counter()
        elapsed = self.config.time_step if self._last_step_time is None else now - self._last_step_time
        self._last_step_time = now
        dt = min(elapsed * self.speed_multiplier, self.config.max_time_step)
        metrics = await asyncio.to_thread(self.simulation.step, dt)
        if metrics.tick % self.broadcast_interval == 0:
            await self._broadcast_snapshot()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step)
            if not await asyncio.to_thread(self.simulation.is_running):
                self._last_step_time = None
                continue
            await self.step_once()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.simulation.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "running": snapshot.running,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "obstacles": snapshot.obstacles,
                "virtual_agents": snapshot.virtual_agents,
                "target": asdict(snapshot.target),
                "display": asdict(snapshot.display),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = await asyncio.to_thread(self._serialize_snapshot)
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in list(self.clients):
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.info("Dropping disconnected snapshot client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


def _bad_request(exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=400)


def _point(payload: dict) -> tuple[float, float]:
    try:
        return (float(payload["x"]), float(payload["y"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("payload must contain numeric 'x' and 'y'") from exc


app = FastAPI(title="Flocking Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


def _status_payload() -> dict:
    simulation = controller.simulation
    metrics = simulation.metrics
    return {
        "running": simulation.is_running(),
        "tick": simulation.tick,
        "agents": len(simulation.get_agents()),
        "obstacles": len(simulation.get_obstacles()),
        "virtual_agents": len(simulation.get_virtual_agents()),
        "target_enabled": simulation.is_target_enabled(),
        "beta_display": simulation.is_beta_display_enabled(),
        "connections_display": simulation.is_connections_display_enabled(),
        "metrics": asdict(metrics) if metrics is not None else None,
    }


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(await asyncio.to_thread(_status_payload))


@app.get("/api/snapshot")
async def snapshot() -> JSONResponse:
    queued = await asyncio.to_thread(controller._serialize_snapshot)
    return JSONResponse(json.loads(queued.payload)["payload"])


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    simulation = controller.simulation
    running, tick = await asyncio.to_thread(lambda: (simulation.is_running(), simulation.tick))
    return JSONResponse({"running": running, "tick": tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/obstacles")
async def add_obstacle(payload: dict) -> JSONResponse:
    try:
        position = _point(payload)
        radius = payload.get("radius")
        obstacle = await asyncio.to_thread(
            controller.simulation.add_obstacle,
            position,
            None if radius is None else float(radius),
            payload.get("kind", "disc"),
        )
    except ValueError as exc:
        return _bad_request(exc)
    return JSONResponse(
        {"x": obstacle.position.x, "y": obstacle.position.y, "radius": obstacle.radius, "kind": obstacle.kind.value}
    )


@app.delete("/api/obstacles")
async def clear_obstacles() -> JSONResponse:
    await asyncio.to_thread(controller.simulation.clear_obstacles)
    return JSONResponse({"obstacles": 0})


@app.post("/api/target")
async def set_target(payload: dict) -> JSONResponse:
    try:
        position = _point(payload)
    except ValueError as exc:
        return _bad_request(exc)
    await asyncio.to_thread(controller.simulation.set_target, position)
    return JSONResponse({"x": position[0], "y": position[1], "enabled": True})


@app.post("/api/target/enable")
async def enable_target() -> JSONResponse:
    await asyncio.to_thread(controller.simulation.enable_target)
    return JSONResponse({"enabled": True})


@app.delete("/api/target")
async def remove_target() -> JSONResponse:
    await asyncio.to_thread(controller.simulation.remove_target)
    return JSONResponse({"enabled": False})


@app.post("/api/display/beta")
async def toggle_beta_display() -> JSONResponse:
    return JSONResponse({"beta_display": await asyncio.to_thread(controller.simulation.toggle_beta_display)})


@app.post("/api/display/connections")
async def toggle_connections() -> JSONResponse:
    return JSONResponse({"connections_display": await asyncio.to_thread(controller.simulation.toggle_connections)})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]

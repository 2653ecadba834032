"""
HTTP / WebSocket surface for the lunge counter.
Clients run pose detection themselves and post leg landmarks per frame; each
session owns one LungeRepCounter held in memory for the life of the process.
"""
from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Response, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, FiniteFloat, ValidationError

from lungecount.config import LungeConfig
from lungecount.counter import LungeRepCounter
from lungecount.pose import Landmark

# Ensure rep logging is visible when running under uvicorn
logging.getLogger("lungecount").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

app = FastAPI(title="Lunge Rep Counter")

_MAX_SESSIONS = 100


class LandmarkIn(BaseModel):
    x: float
    y: float


class SampleIn(BaseModel):
    landmarks: Optional[list[LandmarkIn]] = None
    # Seconds on the client's clock; drives debounce when present.
    timestamp: Optional[FiniteFloat] = None


class ClockMismatch(ValueError):
    pass


class _SessionClock:
    """
    Client-supplied sample time or server monotonic time. The source is fixed by
    the first sample; mixing sources within a session is rejected.
    """

    def __init__(self) -> None:
        self.client_time: Optional[bool] = None
        self.sample_time: Optional[float] = None

    def set_sample(self, timestamp: Optional[float]) -> None:
        client_time = timestamp is not None
        if self.client_time is None:
            self.client_time = client_time
        elif client_time != self.client_time:
            expected = "a timestamp" if self.client_time else "no timestamp"
            raise ClockMismatch(f"session clock is fixed by its first sample; send {expected}")
        self.sample_time = timestamp

    def __call__(self) -> float:
        return self.sample_time if self.sample_time is not None else time.monotonic()


class _RecordingListener:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def report_progress(self, value: float) -> None:
        self.events.append({"type": "progress", "value": value})

    def report_feedback(self, message: str) -> None:
        self.events.append({"type": "feedback", "message": message})

    def report_rep_completed(self) -> None:
        self.events.append({"type": "rep"})


class _Session:
    def __init__(self, config: LungeConfig) -> None:
        self.clock = _SessionClock()
        self.listener = _RecordingListener()
        self.counter = LungeRepCounter(self.listener, config=config, clock=self.clock)
        self.created = time.time()
        self.lock = threading.Lock()

    def process(self, sample: SampleIn) -> dict[str, Any]:
        landmarks = [Landmark(p.x, p.y) for p in sample.landmarks] if sample.landmarks else None
        with self.lock:
            self.clock.set_sample(sample.timestamp)
            self.listener.events = []
            state = self.counter.set_results(landmarks)
            state["events"] = self.listener.events
        return state


_SESSIONS: dict[str, _Session] = {}
_SESSION_LOCK = threading.Lock()


def _new_session() -> tuple[str, _Session]:
    session_id = str(uuid.uuid4())
    session = _Session(LungeConfig.from_env())
    with _SESSION_LOCK:
        while len(_SESSIONS) >= _MAX_SESSIONS:
            oldest = min(_SESSIONS.items(), key=lambda x: x[1].created)
            del _SESSIONS[oldest[0]]
            logger.info("session %s evicted", oldest[0])
        _SESSIONS[session_id] = session
    return session_id, session


def _get_session(session_id: str) -> _Session:
    with _SESSION_LOCK:
        session = _SESSIONS.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or expired.")
    return session


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/sessions", status_code=201)
def create_session() -> dict[str, str]:
    session_id, _ = _new_session()
    logger.info("session %s started", session_id)
    return {"session_id": session_id}


@app.get("/sessions/{session_id}")
def get_session(session_id: str) -> dict[str, Any]:
    session = _get_session(session_id)
    return {
        "session_id": session_id,
        "rep_count": session.counter.rep_count,
        "last_leg": session.counter.state.last_leg.value,
    }


@app.post("/sessions/{session_id}/samples")
def post_sample(session_id: str, sample: SampleIn) -> dict[str, Any]:
    session = _get_session(session_id)
    try:
        return session.process(sample)
    except ClockMismatch as e:
        raise HTTPException(status_code=422, detail=str(e)) from None


@app.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str) -> Response:
    with _SESSION_LOCK:
        session = _SESSIONS.pop(session_id, None)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or expired.")
    logger.info("session %s closed (rep_count=%s)", session_id, session.counter.rep_count)
    return Response(status_code=204)


@app.websocket("/ws/live")
async def live_socket(websocket: WebSocket) -> None:
    await websocket.accept()
    session_id, session = _new_session()
    logger.info("live: session %s started", session_id)
    frames = 0
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            msg = message.get("text")
            if msg is None:
                logger.debug("live: ignoring binary frame")
                continue
            try:
                payload = json.loads(msg)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict) and payload.get("type") == "stop":
                await websocket.send_text(json.dumps({
                    "type": "summary",
                    "session_id": session_id,
                    "rep_count": session.counter.rep_count,
                }))
                await websocket.close()
                return
            try:
                sample = SampleIn.model_validate(payload)
            except ValidationError:
                continue
            try:
                state = session.process(sample)
            except ClockMismatch as e:
                await websocket.send_text(json.dumps({"type": "error", "detail": str(e)}))
                continue
            frames += 1
            await websocket.send_text(json.dumps(state))
    except WebSocketDisconnect:
        logger.info(
            "live: client disconnected (frames=%s, rep_count=%s)",
            frames, session.counter.rep_count,
        )
    finally:
        with _SESSION_LOCK:
            _SESSIONS.pop(session_id, None)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web_app:app", host="0.0.0.0", port=8000, reload=True)

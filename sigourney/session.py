"""Web socket sessions exchanging JSON messages with a patch editor."""

from __future__ import annotations

import asyncio
import json
import logging
import queue
import re
from dataclasses import dataclass
from typing import Any, BinaryIO

from aiohttp import WSMsgType, web

from .audio.engine import AudioError
from .ui import UI, Handler, Object, UIError

log = logging.getLogger(__name__)

PATCH_DIR = "patch"
VALID_NAME = re.compile(r"^[a-zA-Z0-9._-]+$")

AUDIO_OUTPUT = web.AppKey("audio_output", object)

_STRING_FIELDS = {
    "action": "action",
    "name": "name",
    "kind": "kind",
    "from": "from_",
    "to": "to",
    "input": "input",
    "message": "message",
}


def _object_dict(o: Object) -> dict[str, Any]:
    return {
        "Name": o.name,
        "Kind": o.kind,
        "Value": o.value,
        "Input": o.input,
        "Display": o.display,
    }


@dataclass
class Message:
    """A message to or from the editor."""

    action: str = ""
    name: str = ""
    kind: str = ""
    value: float = 0.0
    from_: str = ""
    to: str = ""
    input: str = ""
    display: dict[str, Any] | None = None
    kind_inputs: dict[str, list[str]] | None = None
    graph: list[Object] | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form, leaving out empty optional fields."""
        d: dict[str, Any] = {"Action": self.action}
        if self.name:
            d["Name"] = self.name
        if self.kind:
            d["Kind"] = self.kind
        if self.value:
            d["Value"] = self.value
        d["From"] = self.from_
        if self.to:
            d["To"] = self.to
        if self.input:
            d["Input"] = self.input
        if self.display:
            d["Display"] = self.display
        if self.kind_inputs:
            d["KindInputs"] = self.kind_inputs
        if self.graph:
            d["Graph"] = [_object_dict(o) for o in self.graph]
        d["Message"] = self.message
        return d


def parse_message(data: str | bytes | dict[str, Any]) -> Message:
    """Decode an incoming message; field names match case-insensitively."""
    raw = json.loads(data) if isinstance(data, (str, bytes, bytearray)) else data
    if not isinstance(raw, dict):
        raise ValueError("message is not a JSON object")
    fields = {str(k).lower(): v for k, v in raw.items()}
    msg = Message()
    for key, attr in _STRING_FIELDS.items():
        val = fields.get(key)
        if val is None:
            continue
        if not isinstance(val, str):
            raise ValueError(f"field {key!r} must be a string")
        setattr(msg, attr, val)
    value = fields.get("value")
    if value is not None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("field 'value' must be a number")
        msg.value = float(value)
    display = fields.get("display")
    if display is not None:
        if not isinstance(display, dict):
            raise ValueError("field 'display' must be an object")
        msg.display = display
    kinds = fields.get("kindinputs")
    if kinds is not None:
        if not isinstance(kinds, dict):
            raise ValueError("field 'kindinputs' must be an object")
        msg.kind_inputs = kinds
    return msg


class Session(Handler):
    """One editor connection with its own patch and engine.

    Outgoing messages are queued on ``messages``; None marks the end.
    """

    def __init__(self, output: BinaryIO | None = None) -> None:
        self.messages: queue.Queue[Message | None] = queue.Queue()
        self.ui = UI(self, output)

    def close(self) -> None:
        """Stop audio and end the outgoing message stream."""
        try:
            self.ui.stop()
        finally:
            self.messages.put(None)

    def hello(self, kind_inputs: dict[str, list[str]]) -> None:
        self.messages.put(Message(action="hello", kind_inputs=kind_inputs))

    def set_graph(self, graph: list[Object]) -> None:
        self.messages.put(Message(action="setGraph", graph=graph))

    def handle(self, message: Message) -> None:
        """Carry out a message; on failure report it to the editor and raise."""
        try:
            self._dispatch(message)
        except (UIError, AudioError, OSError, ValueError) as exc:
            self.messages.put(Message(action="message", message=str(exc)))
            raise

    def _dispatch(self, m: Message) -> None:
        action = m.action
        if action == "new":
            self.ui.new_object(m.name, m.kind, m.value)
        elif action == "connect":
            self.ui.connect(m.from_, m.to, m.input)
        elif action == "disconnect":
            self.ui.disconnect(m.from_, m.to, m.input)
        elif action == "set":
            self.ui.set(m.name, m.value)
        elif action == "destroy":
            self.ui.destroy(m.name)
        elif action in ("load", "save"):
            if not VALID_NAME.fullmatch(m.name):
                raise ValueError(
                    f"name {json.dumps(m.name)} doesn't match {VALID_NAME.pattern}"
                )
            filename = f"{PATCH_DIR}/{m.name}"
            if action == "load":
                self.ui.stop()
                self.ui.load(filename)
                self.ui.start()
            else:
                self.ui.save(filename)
        elif action == "setDisplay":
            self.ui.set_display(m.name, m.display)
        else:
            raise ValueError(f"unrecognized Action: {action}")


def _open_session(output: BinaryIO | None) -> Session:
    session = Session(output)
    session.ui.start()
    return session


def new_session() -> Session:
    """Create a session on the default audio output and start its engine."""
    return _open_session(None)


async def _pump(ws: web.WebSocketResponse, session: Session) -> None:
    loop = asyncio.get_running_loop()
    while True:
        msg = await loop.run_in_executor(None, session.messages.get)
        if msg is None:
            return
        try:
            await ws.send_json(msg.to_dict())
        except (ConnectionError, RuntimeError) as exc:
            log.info("websocket write failed: %s", exc)
            return


async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    """Serve one editor over a web socket."""
    ws = web.WebSocketResponse()
    await ws.prepare(request)
    try:
        session = _open_session(request.app.get(AUDIO_OUTPUT))
    except (AudioError, UIError) as exc:
        log.error("%s", exc)
        await ws.close()
        return ws

    writer = asyncio.create_task(_pump(ws, session))
    try:
        async for frame in ws:
            if frame.type not in (WSMsgType.TEXT, WSMsgType.BINARY):
                break
            try:
                message = parse_message(frame.data)
            except ValueError as exc:
                log.error("%s", exc)
                break
            try:
                session.handle(message)
            except (UIError, AudioError, OSError, ValueError) as exc:
                log.error("%s", exc)
    finally:
        try:
            session.close()
        except AudioError as exc:
            log.error("%s", exc)
        await writer
    return ws
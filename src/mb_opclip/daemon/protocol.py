"""Request/Response protocol for CLI-daemon communication.

JSON-over-Unix-socket with newline framing. Each message is one JSON line.

Request:  {"command": "schedule_restore", "params": {"written": "xxx", "prior": "yyy"}}
Response: {"ok": true, "data": {"identity": "base64..."}}
Error:    {"ok": false, "data": {}, "error": "locked", "message": "Identity is locked."}
"""

import json
from dataclasses import dataclass, field


class ProtocolError(ValueError):
    """Malformed protocol message."""


@dataclass(frozen=True)
class Request:
    """Daemon request: a command name with optional string parameters."""

    command: str
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Response:
    """Daemon response: success/error envelope with data."""

    ok: bool
    data: dict[str, object] = field(default_factory=dict)
    error: str = ""
    message: str = ""

    @staticmethod
    def success(data: dict[str, object] | None = None) -> "Response":
        """Build a success response."""
        return Response(ok=True, data=data or {})

    @staticmethod
    def fail(error: str, message: str) -> "Response":
        """Build an error response."""
        return Response(ok=False, error=error, message=message)


def encode_request(req: Request) -> bytes:
    """Serialize a Request to a newline-terminated JSON bytes line."""
    return json.dumps({"command": req.command, "params": req.params}).encode() + b"\n"


def decode_request(data: bytes) -> Request:
    """Deserialize a JSON bytes line into a Request.

    Raises:
        ProtocolError: Not JSON, no command, or non-string parameters.

    """
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON: {e}") from None
    if not isinstance(obj, dict) or not isinstance(obj.get("command"), str):
        raise ProtocolError("Request must be an object with a string 'command'.")
    params = obj.get("params", {})
    if not isinstance(params, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in params.items()):
        raise ProtocolError("Request 'params' must map strings to strings.")
    return Request(command=obj["command"], params=params)


def encode_response(resp: Response) -> bytes:
    """Serialize a Response to a newline-terminated JSON bytes line."""
    payload: dict[str, object] = {"ok": resp.ok, "data": resp.data}
    if not resp.ok:
        payload["error"] = resp.error
        payload["message"] = resp.message
    return json.dumps(payload).encode() + b"\n"


def decode_response(data: bytes) -> Response:
    """Deserialize a JSON bytes line into a Response.

    Raises:
        ProtocolError: Empty or invalid reply.

    """
    try:
        obj = json.loads(data)
    except json.JSONDecodeError:
        raise ProtocolError("Invalid or empty reply from daemon.") from None
    return Response(ok=obj["ok"], data=obj.get("data", {}), error=obj.get("error", ""), message=obj.get("message", ""))

"""
Forward captured agent output to the orchestration gateway.

One POST per resolved stop event, no retries: the gateway owns retry policy,
and the host runtime doesn't wait on the hook's result.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from orchestrix.config import get_gateway_url, get_setting
from orchestrix.logging import HookLogger

EVENT_TYPE = "agent_output"
HOOK_PATH = "/api/hook"


@dataclass
class DispatchResult:
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with second precision (e.g. 2026-02-03T10:00:00Z)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_payload(
    blueprint_id: str,
    agent_id: str,
    content: str,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the gateway event envelope.

    Content is kept as a plain str; JSON encoding (and escaping of quotes,
    backslashes and control characters) happens when the request is sent.
    """
    return {
        "event_type": EVENT_TYPE,
        "blueprint_id": blueprint_id,
        "agent_id": agent_id,
        "content": content,
        "timestamp": timestamp or utc_timestamp(),
    }


def send_event(
    gateway_url: str,
    secret: str,
    payload: Dict[str, Any],
    timeout: float = 10,
) -> DispatchResult:
    """
    POST an event to <gateway>/api/hook.

    Never raises: transport failures are returned as a DispatchResult with
    no status code.
    """
    url = f"{gateway_url.rstrip('/')}{HOOK_PATH}"
    try:
        response = requests.post(
            url,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "X-Webhook-Secret": secret,
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        return DispatchResult(status_code=None, error=f"{type(e).__name__}: {e}")

    if response.status_code != 200:
        return DispatchResult(status_code=response.status_code, error=response.text[:200])
    return DispatchResult(status_code=response.status_code)


def dispatch(
    backend,
    session_name: str,
    window: str,
    blueprint_id: str,
    agent_id: str,
    secret: str,
    logger: Optional[HookLogger] = None,
    gateway_url: Optional[str] = None,
    capture_lines: Optional[int] = None,
    timeout: Optional[float] = None,
) -> DispatchResult:
    """
    Capture a window's scroll-back and forward it to the gateway.

    Args:
        backend: Multiplexer backend
        session_name: Resolved workspace
        window: Window to capture
        blueprint_id: Blueprint id reported to the gateway
        agent_id: Canonical role id
        secret: Shared webhook secret
        logger: Hook logger (defaults to the configured log file)
        gateway_url: Gateway base URL (defaults to config)
        capture_lines: Scroll-back lines to capture (defaults to config)
        timeout: Request timeout in seconds (defaults to config)

    Returns:
        DispatchResult with the HTTP status or transport error
    """
    logger = logger or HookLogger()
    gateway_url = gateway_url or get_gateway_url()
    if capture_lines is None:
        capture_lines = int(get_setting('capture_lines'))
    if timeout is None:
        timeout = float(get_setting('request_timeout'))

    output = backend.capture_pane(session_name, window, capture_lines)
    logger.log_event("stop-hook", f"Captured output from window {window}", {
        "session": session_name,
        "window": window,
        "chars": len(output),
    })

    payload = build_payload(blueprint_id, agent_id, output)
    logger.log_event("stop-hook", f"Sending webhook to {gateway_url}{HOOK_PATH}", {
        "blueprint_id": blueprint_id,
        "agent_id": agent_id,
    })

    result = send_event(gateway_url, secret, payload, timeout=timeout)
    if result.ok:
        logger.log_event("stop-hook", "SUCCESS: Webhook sent", {"status_code": result.status_code})
    else:
        logger.log_error("stop-hook", f"Webhook failed (HTTP {result.status_code})", {
            "status_code": result.status_code,
            "reason": result.error or "",
        })
    return result

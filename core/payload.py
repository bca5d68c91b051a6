"""Payload rendering for the log output and the details pane."""

from __future__ import annotations

import json

BINARY_PREVIEW_BYTES = 32


def format_payload(payload: bytes, pretty: bool = False) -> str:
    """Render a message payload as text.

    JSON is re-serialized (indented when ``pretty``), other UTF-8 is shown
    as-is and anything else as a hex preview.
    """
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        preview = payload[:BINARY_PREVIEW_BYTES].hex(" ")
        suffix = " ..." if len(payload) > BINARY_PREVIEW_BYTES else ""
        return f"Binary({len(payload)} bytes): {preview}{suffix}"

    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if pretty:
        return json.dumps(parsed, indent=2, ensure_ascii=False)
    return json.dumps(parsed, ensure_ascii=False)


def payload_size_label(size: int) -> str:
    """'512 B', '1.5 KiB', '2.0 MiB'."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"

"""Self-describing audio payloads: ``data:<mime-type>;base64,<payload>``."""

from __future__ import annotations

import base64
import binascii
import re

from fieldflow.errors import FieldError, ValidationError

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.*)$", re.S)

_EXTENSIONS = {
    "audio/mpeg": "mp3", "audio/mp3": "mp3", "audio/wav": "wav", "audio/x-wav": "wav",
    "audio/webm": "webm", "audio/ogg": "ogg", "audio/mp4": "m4a", "audio/x-m4a": "m4a",
    "audio/flac": "flac",
}


def to_data_uri(audio: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(audio).decode('ascii')}"


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (mime type, raw bytes)."""
    m = _DATA_URI_RE.match(uri.strip())
    if not m:
        raise ValidationError([FieldError("audio_data_uri", "Expected data:<mime-type>;base64,<payload>")])
    try:
        audio = base64.b64decode(m.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError([FieldError("audio_data_uri", "Payload is not valid base64")]) from None
    if not audio:
        raise ValidationError([FieldError("audio_data_uri", "Audio payload is empty")])
    return m.group("mime").lower(), audio


def extension_for(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type.lower(), "mp3")

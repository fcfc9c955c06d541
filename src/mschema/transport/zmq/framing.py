"""ZMQ multipart framing for subject-addressed requests.

Request (DEALER -> ROUTER)
    (optional routing prefix...), version, id, subject, payload

Reply (ROUTER -> DEALER)
    (optional routing prefix...), version, id, payload
"""

from __future__ import annotations

from typing import NamedTuple, Sequence, Tuple

from ..base import TransportError


# This is the version of the on-the-wire framing implemented here,
# identified by a single byte.

version = b"a"


class Frames(NamedTuple):
    prefix: Tuple[bytes, ...]
    msg_id: bytes
    subject: str
    payload: bytes


def to_request_frames(msg_id: bytes, subject: str, payload: bytes) -> Tuple[bytes, ...]:
    """Encode a request as DEALER multipart frames."""

    return (version, msg_id, subject.encode(), payload or b"")


def to_reply_frames(prefix: Sequence[bytes], msg_id: bytes, payload: bytes) -> Tuple[bytes, ...]:
    """Encode a reply as ROUTER multipart frames, routing prefix first."""

    return tuple(prefix) + (version, msg_id, payload or b"")


def _split_prefix(parts: Sequence[bytes]) -> Tuple[Tuple[bytes, ...], int]:

    # ROUTER sockets prepend identity frames. We expect either:
    #   [version, id, ...]
    # or
    #   [ident, version, id, ...]

    if not parts:
        raise TransportError("empty message")

    if parts[0] == version:
        return (), 0
    return (parts[0],), 1


def from_request_frames(parts: Sequence[bytes]) -> Frames:
    """Decode ROUTER-side request parts."""

    prefix, start = _split_prefix(parts)

    if len(parts) < start + 4:
        raise TransportError(f"malformed request: {len(parts)} frames")

    their_version = parts[start]
    if their_version != version:
        raise TransportError(
            f"message is framing version {their_version!r}, recipient expects {version!r}"
        )

    subject = parts[start + 2].decode()
    return Frames(prefix, parts[start + 1], subject, parts[start + 3])


def from_reply_frames(parts: Sequence[bytes]) -> Tuple[bytes, bytes]:
    """Decode DEALER-side reply parts into (msg_id, payload).

    A version mismatch still yields the id, so that the error can be
    handed back to the original caller.
    """

    if len(parts) < 3:
        raise TransportError(f"malformed reply: {len(parts)} frames")

    their_version = parts[0]
    msg_id = parts[1]

    if their_version != version:
        raise VersionMismatch(msg_id, their_version)

    return msg_id, parts[2]


class VersionMismatch(TransportError):

    def __init__(self, msg_id: bytes, their_version: bytes):
        TransportError.__init__(
            self,
            f"message is framing version {their_version!r}, recipient expects {version!r}",
        )
        self.msg_id = msg_id

"""Parsing of OpenPGP packet framing and the packet fields needed for key IDs."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field


class PacketError(ValueError):
    """Raised when packet data is malformed or truncated."""


class PacketTag(enum.IntEnum):
    """OpenPGP packet types."""

    PUBLIC_KEY_ENCRYPTED_SESSION_KEY = 1
    SIGNATURE = 2
    SYMMETRIC_KEY_ENCRYPTED_SESSION_KEY = 3
    ONE_PASS_SIGNATURE = 4
    SECRET_KEY = 5
    PUBLIC_KEY = 6
    SECRET_SUBKEY = 7
    COMPRESSED_DATA = 8
    SYMMETRICALLY_ENCRYPTED_DATA = 9
    MARKER = 10
    LITERAL_DATA = 11
    TRUST = 12
    USER_ID = 13
    PUBLIC_SUBKEY = 14
    USER_ATTRIBUTE = 17
    SYM_ENCRYPTED_INTEGRITY_PROTECTED_DATA = 18
    MODIFICATION_DETECTION_CODE = 19
    AEAD_ENCRYPTED_DATA = 20
    PADDING = 21


@dataclass(frozen=True)
class Packet:
    """One packet: its tag, its body and where it sits in the input."""

    tag: PacketTag | int
    body: bytes
    start: int
    end: int


@dataclass(frozen=True)
class Notation:
    """A notation data subpacket of a signature."""

    name: str
    value: bytes
    is_critical: bool = False
    is_human_readable: bool = True


_SUBPACKET_CREATION_TIME = 2
_SUBPACKET_ISSUER = 16
_SUBPACKET_NOTATION = 20
_SUBPACKET_ISSUER_FINGERPRINT = 33


def _take(buf: bytes, pos: int, length: int) -> bytes:
    if length < 0 or pos + length > len(buf):
        raise PacketError("unexpected end of packet data")
    return buf[pos:pos + length]


def _iter_subpackets(area: bytes) -> Iterator[tuple[int, bool, bytes]]:
    pos = 0
    while pos < len(area):
        first = area[pos]
        pos += 1
        if first < 192:
            length = first
        elif first < 255:
            second = _take(area, pos, 1)[0]
            pos += 1
            length = ((first - 192) << 8) + second + 192
        else:
            length = int.from_bytes(_take(area, pos, 4), "big")
            pos += 4
        if length == 0:
            raise PacketError("zero length signature subpacket")
        content = _take(area, pos, length)
        pos += length
        yield content[0] & 0x7F, bool(content[0] & 0x80), content[1:]


def _parse_notation(data: bytes, critical: bool) -> Notation:
    if len(data) < 8:
        raise PacketError("notation subpacket too short")
    name_length = int.from_bytes(data[4:6], "big")
    value_length = int.from_bytes(data[6:8], "big")
    if len(data) != 8 + name_length + value_length:
        raise PacketError("notation subpacket has wrong length")
    name = data[8:8 + name_length].decode("utf-8", errors="replace")
    value = data[8 + name_length:]
    return Notation(
        name=name,
        value=value,
        is_critical=critical,
        is_human_readable=bool(data[0] & 0x80),
    )


@dataclass(frozen=True)
class SignaturePacket:
    """The fields of a signature packet that identify and describe it."""

    version: int
    sig_type: int
    pubkey_algo: int
    hash_algo: int
    creation_time: int
    issuer_key_id: int | None = None
    issuer_fingerprint: bytes | None = None
    notations: tuple[Notation, ...] = field(default_factory=tuple)
    raw: bytes = b""

    @classmethod
    def parse(cls, body: bytes) -> "SignaturePacket":
        """Parse the body of a version 3, 4 or 6 signature packet."""
        body = bytes(body)
        if not body:
            raise PacketError("empty signature packet")
        version = body[0]
        if version in (2, 3):
            if len(body) < 19 or body[1] != 5:
                raise PacketError("malformed version 3 signature packet")
            return cls(
                version=version,
                sig_type=body[2],
                pubkey_algo=body[15],
                hash_algo=body[16],
                creation_time=int.from_bytes(body[3:7], "big"),
                issuer_key_id=int.from_bytes(body[7:15], "big"),
                raw=body,
            )
        if version not in (4, 6):
            raise PacketError(f"unsupported signature packet version {version}")

        pos = 1
        sig_type, pubkey_algo, hash_algo = _take(body, pos, 3)
        pos += 3
        width = 4 if version == 6 else 2
        hashed_length = int.from_bytes(_take(body, pos, width), "big")
        pos += width
        hashed = _take(body, pos, hashed_length)
        pos += hashed_length
        unhashed_length = int.from_bytes(_take(body, pos, width), "big")
        pos += width
        unhashed = _take(body, pos, unhashed_length)
        pos += unhashed_length
        _take(body, pos, 2)

        creation_time: int | None = None
        issuer_key_id: int | None = None
        issuer_fingerprint: bytes | None = None
        notations: list[Notation] = []
        for area, is_hashed in ((hashed, True), (unhashed, False)):
            for kind, critical, content in _iter_subpackets(area):
                if kind == _SUBPACKET_CREATION_TIME and is_hashed:
                    if len(content) != 4:
                        raise PacketError("creation time subpacket has wrong length")
                    creation_time = int.from_bytes(content, "big")
                elif kind == _SUBPACKET_ISSUER:
                    if len(content) != 8:
                        raise PacketError("issuer subpacket has wrong length")
                    issuer_key_id = int.from_bytes(content, "big")
                elif kind == _SUBPACKET_ISSUER_FINGERPRINT:
                    if len(content) < 2:
                        raise PacketError("issuer fingerprint subpacket too short")
                    issuer_fingerprint = content[1:]
                elif kind == _SUBPACKET_NOTATION and is_hashed:
                    notations.append(_parse_notation(content, critical))

        if creation_time is None:
            raise PacketError("signature packet without creation time")
        if issuer_key_id is None and issuer_fingerprint is not None:
            if version == 6:
                issuer_key_id = int.from_bytes(issuer_fingerprint[:8], "big")
            elif len(issuer_fingerprint) >= 8:
                issuer_key_id = int.from_bytes(issuer_fingerprint[-8:], "big")

        return cls(
            version=version,
            sig_type=sig_type,
            pubkey_algo=pubkey_algo,
            hash_algo=hash_algo,
            creation_time=creation_time,
            issuer_key_id=issuer_key_id,
            issuer_fingerprint=issuer_fingerprint,
            notations=tuple(notations),
            raw=body,
        )


def _as_tag(value: int) -> PacketTag | int:
    try:
        return PacketTag(value)
    except ValueError:
        return value


def _read_new_format_body(buf: bytes, pos: int) -> tuple[bytes, int]:
    chunks: list[bytes] = []
    while True:
        first = _take(buf, pos, 1)[0]
        pos += 1
        partial = False
        if first < 192:
            length = first
        elif first < 224:
            second = _take(buf, pos, 1)[0]
            pos += 1
            length = ((first - 192) << 8) + second + 192
        elif first == 255:
            length = int.from_bytes(_take(buf, pos, 4), "big")
            pos += 4
        else:
            length = 1 << (first & 0x1F)
            partial = True
        chunks.append(_take(buf, pos, length))
        pos += length
        if not partial:
            return b"".join(chunks), pos


def iter_packets(data: bytes) -> Iterator[Packet]:
    """Yield the packets in ``data`` one after another."""
    buf = bytes(data)
    pos = 0
    while pos < len(buf):
        start = pos
        first = buf[pos]
        pos += 1
        if not first & 0x80:
            raise PacketError("tag byte does not have MSB set")
        if first & 0x40:
            tag = first & 0x3F
            body, pos = _read_new_format_body(buf, pos)
        else:
            tag = (first >> 2) & 0x0F
            length_type = first & 0x03
            if length_type == 3:
                body = buf[pos:]
                pos = len(buf)
            else:
                width = (1, 2, 4)[length_type]
                length = int.from_bytes(_take(buf, pos, width), "big")
                pos += width
                body = _take(buf, pos, length)
                pos += length
        yield Packet(tag=_as_tag(tag), body=body, start=start, end=pos)


def encrypted_key_id(body: bytes) -> int:
    """Return the recipient key ID of a public-key encrypted session key packet."""
    body = bytes(body)
    if not body:
        raise PacketError("empty encrypted key packet")
    version = body[0]
    if version == 3:
        return int.from_bytes(_take(body, 1, 8), "big")
    if version == 6:
        length = _take(body, 1, 1)[0]
        if length == 0:
            return 0
        key_version = _take(body, 2, 1)[0]
        fingerprint = _take(body, 3, length - 1)
        if len(fingerprint) < 8:
            raise PacketError("encrypted key fingerprint too short")
        if key_version == 6:
            return int.from_bytes(fingerprint[:8], "big")
        return int.from_bytes(fingerprint[-8:], "big")
    raise PacketError(f"unsupported encrypted key packet version {version}")


def one_pass_signature_key_id(body: bytes) -> int:
    """Return the signer key ID of a one-pass signature packet."""
    body = bytes(body)
    if not body:
        raise PacketError("empty one-pass signature packet")
    version = body[0]
    if version == 3:
        return int.from_bytes(_take(body, 4, 8), "big")
    if version == 6:
        salt_length = _take(body, 4, 1)[0]
        fingerprint = _take(body, 5 + salt_length, 32)
        return int.from_bytes(fingerprint[:8], "big")
    raise PacketError(f"unsupported one-pass signature packet version {version}")


def key_id_to_hex(key_id: int) -> str:
    """Format a key ID as 16 lower-case hex digits."""
    return f"{key_id:016x}"
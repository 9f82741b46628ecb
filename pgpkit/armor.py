"""ASCII armor encoding and decoding for OpenPGP data."""

from __future__ import annotations

import base64
import binascii
import re
import textwrap
from collections.abc import Mapping
from dataclasses import dataclass, field

_CRC24_INIT = 0xB704CE
_CRC24_POLY = 0x1864CFB
_LINE_LENGTH = 64

_BEGIN = re.compile(r"-----BEGIN (.+)-----")
_END = re.compile(r"-----END (.+)-----")


class ArmorError(ValueError):
    """Raised when armored input cannot be decoded."""


@dataclass(frozen=True)
class ArmorBlock:
    """A decoded armored block: its type, headers and binary body."""

    block_type: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def crc24(data: bytes) -> int:
    """Return the 24-bit armor checksum of ``data``."""
    crc = _CRC24_INIT
    for byte in data:
        crc ^= byte << 16
        for _ in range(8):
            crc <<= 1
            if crc & 0x1000000:
                crc ^= _CRC24_POLY
    return crc & 0xFFFFFF


def _checksum_line(data: bytes) -> str:
    return "=" + base64.b64encode(crc24(data).to_bytes(3, "big")).decode("ascii")


def armor(
    data: bytes,
    block_type: str,
    headers: Mapping[str, str] | None = None,
    checksum: bool = True,
) -> str:
    """Armor ``data`` as a block of ``block_type``; empty header values are left out."""
    lines = [f"-----BEGIN {block_type}-----"]
    lines.extend(f"{key}: {value}" for key, value in (headers or {}).items() if value)
    lines.append("")
    encoded = base64.b64encode(bytes(data)).decode("ascii")
    lines.extend(textwrap.wrap(encoded, _LINE_LENGTH))
    if checksum:
        lines.append(_checksum_line(bytes(data)))
    lines.append(f"-----END {block_type}-----")
    return "\n".join(lines) + "\n"


def unarmor(data: str | bytes) -> ArmorBlock:
    """Decode the first armored block in ``data``."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArmorError(f"unable to unarmor: {exc}") from exc

    lines = (line.strip() for line in data.splitlines())

    for line in lines:
        begin = _BEGIN.fullmatch(line)
        if begin:
            block_type = begin.group(1)
            break
    else:
        raise ArmorError("unable to unarmor: no armored block found")

    headers: dict[str, str] = {}
    body_lines: list[str] = []
    for line in lines:
        if not line:
            break
        key, sep, value = line.partition(":")
        if not sep:
            body_lines.append(line)
            break
        headers[key.strip()] = value.strip()
    else:
        raise ArmorError("unable to unarmor: unexpected end of input")

    checksum: str | None = None
    for line in lines:
        end = _END.fullmatch(line)
        if end:
            if end.group(1) != block_type:
                raise ArmorError("unable to unarmor: mismatched end line")
            break
        if line.startswith("="):
            checksum = line[1:]
        elif line:
            body_lines.append(line)
    else:
        raise ArmorError("unable to unarmor: missing end line")

    try:
        body = base64.b64decode("".join(body_lines), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ArmorError(f"unable to unarmor: invalid base64 body: {exc}") from exc

    if checksum is not None:
        try:
            expected = base64.b64decode(checksum, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ArmorError("unable to unarmor: malformed checksum") from exc
        if len(expected) != 3 or int.from_bytes(expected, "big") != crc24(body):
            raise ArmorError("unable to unarmor: checksum mismatch")

    return ArmorBlock(block_type=block_type, headers=headers, body=body)
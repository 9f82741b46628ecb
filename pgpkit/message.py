"""OpenPGP messages split into key packets and data packets."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass

from .armor import armor as _armor
from .armor import unarmor
from .packets import (
    Packet,
    PacketError,
    PacketTag,
    SignaturePacket,
    encrypted_key_id,
    iter_packets,
    key_id_to_hex,
    one_pass_signature_key_id,
)

MESSAGE_HEADER = "PGP MESSAGE"
SIGNATURE_HEADER = "PGP SIGNATURE"

_KEY_TAGS = frozenset(
    {
        PacketTag.PUBLIC_KEY_ENCRYPTED_SESSION_KEY,
        PacketTag.SYMMETRIC_KEY_ENCRYPTED_SESSION_KEY,
    }
)
_ENCRYPTED_DATA_TAGS = frozenset(
    {
        PacketTag.SYMMETRICALLY_ENCRYPTED_DATA,
        PacketTag.SYM_ENCRYPTED_INTEGRITY_PROTECTED_DATA,
        PacketTag.AEAD_ENCRYPTED_DATA,
    }
)
_STOP_TAGS = _ENCRYPTED_DATA_TAGS | {PacketTag.COMPRESSED_DATA, PacketTag.LITERAL_DATA}

_MESSAGE_PATTERN = re.compile(
    "^-----BEGIN " + MESSAGE_HEADER + "-----(?s:.+)-----END " + MESSAGE_HEADER + "-----"
)


@dataclass
class LiteralMetadata:
    """Metadata of a literal data packet."""

    is_utf8: bool = False
    filename: str = ""
    mod_time: int = 0


def _collect_ids(data: bytes, extract: Callable[[Packet], int | None]) -> list[int]:
    ids: list[int] = []
    try:
        for packet in iter_packets(data):
            if packet.tag in _STOP_TAGS:
                break
            key_id = extract(packet)
            if key_id is not None:
                ids.append(key_id)
    except PacketError:
        pass
    return ids


def _encryption_id(packet: Packet) -> int | None:
    if packet.tag == PacketTag.PUBLIC_KEY_ENCRYPTED_SESSION_KEY:
        return encrypted_key_id(packet.body)
    return None


def _signature_id(packet: Packet) -> int | None:
    if packet.tag == PacketTag.ONE_PASS_SIGNATURE:
        return one_pass_signature_key_id(packet.body)
    if packet.tag == PacketTag.SIGNATURE:
        return SignaturePacket.parse(packet.body).issuer_key_id
    return None


def _hex_json(ids: list[int]) -> bytes | None:
    if not ids:
        return None
    return json.dumps([key_id_to_hex(i) for i in ids], separators=(",", ":")).encode("utf-8")


def _split(data: bytes) -> tuple[bytes, bytes]:
    split_point = 0
    for packet in iter_packets(data):
        if packet.tag in _KEY_TAGS:
            split_point = packet.end
        elif packet.tag in _ENCRYPTED_DATA_TAGS:
            break
    return data[:split_point], data[split_point:]


@dataclass
class PGPMessage:
    """An OpenPGP message: key packets, data packets and an optional detached signature."""

    key_packet: bytes | None = None
    data_packet: bytes = b""
    detached_signature: bytes | None = None
    detached_signature_is_plain: bool = False
    omit_armor_checksum: bool = False

    @classmethod
    def from_bytes(cls, data: bytes) -> "PGPMessage":
        """Split binary message data; unparsable data is kept whole as the data packet."""
        data = bytes(data)
        try:
            key_packet, data_packet = _split(data)
        except PacketError:
            return cls(data_packet=data)
        return cls(key_packet=key_packet, data_packet=data_packet)

    @classmethod
    def from_armored(cls, armored: str | bytes) -> "PGPMessage":
        """Unarmor and split an armored message."""
        block = unarmor(armored)
        key_packet, data_packet = _split(block.body)
        return cls(key_packet=key_packet, data_packet=data_packet)

    @classmethod
    def split(cls, key_packet: bytes, data_packet: bytes) -> "PGPMessage":
        """Build a message from separate key and data packets."""
        return cls(key_packet=bytes(key_packet), data_packet=bytes(data_packet))

    def to_bytes(self) -> bytes:
        """Return the key packets followed by the data packets."""
        return (self.key_packet or b"") + self.data_packet

    def armor(self) -> str:
        """Return the armored message."""
        if self.key_packet is None:
            raise ValueError("missing key packets in pgp message")
        return _armor(self.to_bytes(), MESSAGE_HEADER, checksum=not self.omit_armor_checksum)

    def armor_bytes(self) -> bytes:
        """Return the armored message as bytes."""
        return self.armor().encode("ascii")

    def armor_with_custom_headers(self, comment: str, version: str) -> str:
        """Return the armored message with Version and Comment headers; empty ones are left out."""
        headers = {"Version": version, "Comment": comment}
        return _armor(
            self.to_bytes(), MESSAGE_HEADER, headers, checksum=not self.omit_armor_checksum
        )

    def encryption_key_ids(self) -> list[int]:
        """Return the IDs of the keys the session key is encrypted to."""
        return _collect_ids(self.key_packet or b"", _encryption_id)

    def hex_encryption_key_ids(self) -> list[str]:
        """Return the encryption key IDs as hex strings."""
        return [key_id_to_hex(i) for i in self.encryption_key_ids()]

    def hex_encryption_key_ids_json(self) -> bytes | None:
        """Return the hex encryption key IDs as a JSON array, or None if there are none."""
        return _hex_json(self.encryption_key_ids())

    def signature_key_ids(self) -> list[int]:
        """Return the IDs of the keys that made the readable signatures in the data packet."""
        return signature_key_ids(self.data_packet)

    def hex_signature_key_ids(self) -> list[str]:
        """Return the signature key IDs as hex strings."""
        return [key_id_to_hex(i) for i in self.signature_key_ids()]

    def hex_signature_key_ids_json(self) -> bytes | None:
        """Return the hex signature key IDs as a JSON array, or None if there are none."""
        return _hex_json(self.signature_key_ids())

    def encrypted_detached_signature(self) -> "PGPMessage | None":
        """Return the encrypted detached signature as a message, or None."""
        if self.detached_signature is None or self.detached_signature_is_plain:
            return None
        return PGPMessage(key_packet=self.key_packet, data_packet=self.detached_signature)

    def plain_detached_signature(self) -> bytes:
        """Return the plaintext detached signature."""
        if self.detached_signature is None or not self.detached_signature_is_plain:
            raise ValueError("no plaintext detached signature found")
        return self.detached_signature

    def plain_detached_signature_armor(self) -> bytes:
        """Return the armored plaintext detached signature."""
        signature = self.plain_detached_signature()
        return _armor(signature, SIGNATURE_HEADER).encode("ascii")

    def number_of_key_packets(self) -> int:
        """Count the session key packets of the message."""
        return sum(1 for p in iter_packets(self.key_packet or b"") if p.tag in _KEY_TAGS)


class PGPMessageBuffer:
    """Collects key packets, data packets and a detached signature written separately."""

    def __init__(self) -> None:
        self._keys = bytearray()
        self._data = bytearray()
        self._signature = bytearray()

    def write(self, data: bytes) -> int:
        """Append to the data packets."""
        self._data += data
        return len(data)

    def write_keys(self, data: bytes) -> int:
        """Append to the key packets."""
        self._keys += data
        return len(data)

    def write_signature(self, data: bytes) -> int:
        """Append to the detached signature."""
        self._signature += data
        return len(data)

    def pgp_message(self, is_plain: bool = False, omit_armor_checksum: bool = False) -> PGPMessage:
        """Build the message from what has been written."""
        detached = bytes(self._signature) if self._signature else None
        if not self._keys:
            message = PGPMessage.from_bytes(bytes(self._data))
            message.detached_signature = detached
            return message
        return PGPMessage(
            key_packet=bytes(self._keys),
            data_packet=bytes(self._data),
            detached_signature=detached,
            detached_signature_is_plain=is_plain,
            omit_armor_checksum=omit_armor_checksum,
        )


def is_pgp_message(data: str) -> bool:
    """Tell whether ``data`` starts as an armored PGP message."""
    return _MESSAGE_PATTERN.search(data) is not None


def signature_key_ids(signature: bytes) -> list[int]:
    """Return the IDs of the keys that made the signatures in ``signature``."""
    return _collect_ids(bytes(signature), _signature_id)


def signature_hex_key_ids(signature: bytes) -> list[str]:
    """Return the signature key IDs in ``signature`` as hex strings."""
    return [key_id_to_hex(i) for i in signature_key_ids(signature)]
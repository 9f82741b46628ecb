import json

import pytest

from pgpkit.armor import ArmorError, unarmor
from pgpkit.message import (
    LiteralMetadata,
    PGPMessage,
    PGPMessageBuffer,
    is_pgp_message,
    signature_hex_key_ids,
    signature_key_ids,
)

ID_A = bytes.fromhex("76ad736fa7e0e83c")
ID_B = bytes.fromhex("0f65b7ae456a9ceb")
SIG_ID_A = bytes.fromhex("3eb6259edf21df24")
SIG_ID_B = bytes.fromhex("d05b722681936ad0")

AEAD_MESSAGE = """-----BEGIN PGP MESSAGE-----

hF4DJDxTg/yg6TkSAQdA3Ogzuxwz7IdSRCh81gdYuB0bKqkYDs7EksOkYJ7eUnMw
FsRNg+X3KbCj9j747An4J7V8trghOIN00dlpuR77wELS79XHoP55qmyVyPzmTXdx
1F8BCQIQyGCAxAA1ppydoBVp7ithTEl2bU72tbOsLCFY8TBamG6t3jfqJpO2lz+G
M0xNgvwIDrAQsN35VGw72I/FvWJ0VG3rpBKgFp5nPK0NblRomXTRRfoNgSoVUcxU
vA==
=YNf2
-----END PGP MESSAGE-----
"""


def _packet(tag, body):
    assert len(body) < 192
    return bytes([0xC0 | tag, len(body)]) + body


def _pkesk(key_id):
    return _packet(1, b"\x03" + key_id + b"\x01" + b"\x00\x08\x55")


def _skesk():
    return _packet(3, b"\x04\x09\x03\x08" + bytes(8) + b"\x60")


def _seipd(payload=b"encrypted-bytes"):
    return _packet(18, b"\x01" + payload)


def _ops(key_id):
    return _packet(4, b"\x03\x00\x08\x01" + key_id + b"\x00")


def _signature(key_id):
    hashed = bytes([5, 2]) + (1600000000).to_bytes(4, "big")
    unhashed = bytes([9, 16]) + key_id
    body = (
        bytes([4, 0, 1, 8])
        + len(hashed).to_bytes(2, "big")
        + hashed
        + len(unhashed).to_bytes(2, "big")
        + unhashed
        + b"\xab\xcd\x00\x08\xff"
    )
    return _packet(2, body)


def test_split_message_from_armored_with_aead():
    msg = PGPMessage.from_armored(AEAD_MESSAGE)
    assert msg.key_packet
    assert msg.data_packet
    assert msg.hex_encryption_key_ids() == ["243c5383fca0e939"]
    assert msg.number_of_key_packets() == 1
    assert msg.to_bytes() == unarmor(AEAD_MESSAGE).body


def test_from_bytes_splits_key_and_data():
    keys = _pkesk(ID_A) + _pkesk(ID_B)
    data = _seipd()
    msg = PGPMessage.from_bytes(keys + data)
    assert msg.key_packet == keys
    assert msg.data_packet == data


def test_from_bytes_with_unparsable_data_keeps_data_whole():
    raw = b"\x00not a packet"
    msg = PGPMessage.from_bytes(raw)
    assert msg.key_packet is None
    assert msg.data_packet == raw


def test_from_bytes_without_key_packets():
    msg = PGPMessage.from_bytes(_seipd())
    assert msg.key_packet == b""
    assert msg.data_packet == _seipd()


def test_split_and_to_bytes():
    msg = PGPMessage.split(_pkesk(ID_A), _seipd())
    assert msg.to_bytes() == _pkesk(ID_A) + _seipd()


def test_armor_round_trip():
    msg = PGPMessage.split(_pkesk(ID_A) + _skesk(), _seipd())
    armored = msg.armor()
    assert is_pgp_message(armored)
    again = PGPMessage.from_armored(armored)
    assert again.key_packet == msg.key_packet
    assert again.data_packet == msg.data_packet
    assert msg.armor_bytes() == armored.encode("ascii")


def test_armor_without_key_packet_raises():
    msg = PGPMessage(data_packet=_seipd())
    with pytest.raises(ValueError):
        msg.armor()
    with pytest.raises(ValueError):
        msg.armor_bytes()


def test_armor_checksum_can_be_omitted():
    with_sum = PGPMessage.split(_pkesk(ID_A), _seipd()).armor()
    without = PGPMessage(key_packet=_pkesk(ID_A), data_packet=_seipd(), omit_armor_checksum=True).armor()
    assert "\n=" in with_sum
    assert "\n=" not in without
    assert unarmor(without).body == unarmor(with_sum).body


def test_armored_with_custom_headers():
    msg = PGPMessage.split(_pkesk(ID_A), _seipd())
    comment = "User-defined comment"
    version = "User-defined version"
    armored = msg.armor_with_custom_headers(comment, version)
    assert "Comment: " + comment in armored
    assert "Version: " + version in armored


def test_armored_with_empty_headers():
    msg = PGPMessage.split(_pkesk(ID_A), _seipd())
    armored = msg.armor_with_custom_headers("", "")
    assert "Version" not in armored
    assert "Comment" not in armored


def test_from_armored_invalid_raises():
    with pytest.raises(ArmorError):
        PGPMessage.from_armored("not armored at all")


def test_hex_encryption_key_ids():
    msg = PGPMessage.from_bytes(_pkesk(ID_A) + _pkesk(ID_B) + _seipd())
    ids = msg.hex_encryption_key_ids()
    assert len(ids) == 2
    assert ids[0] == "76ad736fa7e0e83c"
    assert ids[1] == "0f65b7ae456a9ceb"
    assert msg.encryption_key_ids() == [int.from_bytes(ID_A, "big"), int.from_bytes(ID_B, "big")]
    assert json.loads(msg.hex_encryption_key_ids_json()) == ids


def test_encryption_key_ids_empty():
    msg = PGPMessage.from_bytes(_skesk() + _seipd())
    assert msg.encryption_key_ids() == []
    assert msg.hex_encryption_key_ids_json() is None
    assert msg.number_of_key_packets() == 1


def test_number_of_key_packets_counts_both_kinds():
    msg = PGPMessage.from_bytes(_pkesk(ID_A) + _skesk() + _pkesk(ID_B) + _seipd())
    assert msg.number_of_key_packets() == 3


def test_hex_signature_key_ids():
    data = _ops(SIG_ID_A) + _ops(SIG_ID_B) + _packet(11, b"b\x00\x00\x00\x00\x00hi")
    msg = PGPMessage(key_packet=b"", data_packet=data)
    ids = msg.hex_signature_key_ids()
    assert len(ids) == 2
    assert ids[0] == "3eb6259edf21df24"
    assert ids[1] == "d05b722681936ad0"
    assert json.loads(msg.hex_signature_key_ids_json()) == ids


def test_signature_key_ids_of_detached_signature():
    sig = _signature(SIG_ID_A)
    assert signature_key_ids(sig) == [int.from_bytes(SIG_ID_A, "big")]
    assert signature_hex_key_ids(sig) == ["3eb6259edf21df24"]


def test_signature_key_ids_stop_at_literal_data():
    data = _packet(11, b"b\x00\x00\x00\x00\x00hi") + _signature(SIG_ID_A)
    assert signature_key_ids(data) == []
    assert PGPMessage(data_packet=data).hex_signature_key_ids_json() is None


def test_encrypted_detached_signature():
    msg = PGPMessage(key_packet=_pkesk(ID_A), data_packet=_seipd(), detached_signature=b"sig")
    enc = msg.encrypted_detached_signature()
    assert enc.key_packet == _pkesk(ID_A)
    assert enc.data_packet == b"sig"
    with pytest.raises(ValueError):
        msg.plain_detached_signature()


def test_plain_detached_signature():
    sig = _signature(SIG_ID_A)
    msg = PGPMessage(
        key_packet=_pkesk(ID_A),
        data_packet=_seipd(),
        detached_signature=sig,
        detached_signature_is_plain=True,
    )
    assert msg.encrypted_detached_signature() is None
    assert msg.plain_detached_signature() == sig
    armored = msg.plain_detached_signature_armor()
    assert armored.startswith(b"-----BEGIN PGP SIGNATURE-----")
    assert unarmor(armored).body == sig


def test_no_detached_signature():
    msg = PGPMessage.split(_pkesk(ID_A), _seipd())
    assert msg.encrypted_detached_signature() is None
    with pytest.raises(ValueError):
        msg.plain_detached_signature_armor()


def test_buffer_without_keys_splits_data():
    buffer = PGPMessageBuffer()
    assert buffer.write(_pkesk(ID_A)) == len(_pkesk(ID_A))
    buffer.write(_seipd())
    buffer.write_signature(b"sig")
    msg = buffer.pgp_message(is_plain=True)
    assert msg.key_packet == _pkesk(ID_A)
    assert msg.data_packet == _seipd()
    assert msg.detached_signature == b"sig"
    assert msg.detached_signature_is_plain is False


def test_buffer_with_keys():
    buffer = PGPMessageBuffer()
    buffer.write_keys(_pkesk(ID_B))
    buffer.write(_seipd())
    buffer.write_signature(b"signature")
    msg = buffer.pgp_message(is_plain=True, omit_armor_checksum=True)
    assert msg.key_packet == _pkesk(ID_B)
    assert msg.data_packet == _seipd()
    assert msg.plain_detached_signature() == b"signature"
    assert msg.omit_armor_checksum is True


def test_buffer_without_signature():
    buffer = PGPMessageBuffer()
    buffer.write_keys(_pkesk(ID_A))
    buffer.write(_seipd())
    msg = buffer.pgp_message()
    assert msg.detached_signature is None
    assert msg.to_bytes() == _pkesk(ID_A) + _seipd()


def test_is_pgp_message():
    assert is_pgp_message(AEAD_MESSAGE)
    assert not is_pgp_message("-----BEGIN PGP SIGNATURE-----\n\nabc\n-----END PGP SIGNATURE-----")
    assert not is_pgp_message("prefix " + AEAD_MESSAGE)


def test_literal_metadata_defaults():
    meta = LiteralMetadata()
    assert (meta.is_utf8, meta.filename, meta.mod_time) == (False, "", 0)
    named = LiteralMetadata(is_utf8=True, filename="file.txt", mod_time=1559655883)
    assert named.filename == "file.txt"
    assert named.mod_time == 1559655883
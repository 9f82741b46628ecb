# pgpkit

Pure-Python building blocks for handling OpenPGP messages. The package has no third-party dependencies.

- `pgpkit.message`: splits a binary or armored OpenPGP message into its key packets and data packets. It lists the key IDs a session key was encrypted to and the key IDs of any signatures, and it armors messages again.
- `pgpkit.packets`: reads OpenPGP packet framing and parses signature packets, including creation time, issuer, issuer fingerprint and notations.
- `pgpkit.armor`: ASCII armor encoding and decoding with the CRC-24 checksum.
- `pgpkit.utf8check`: a writer wrapper that rejects data that is not valid UTF-8.
- `pgpkit.text`: line-ending canonicalisation, per-line trimming of trailing whitespace, and a reader that can be rewound.

## What it does not do

pgpkit does no cryptography. It does not encrypt, decrypt, sign or verify. It does not generate or unlock keys and does not handle session keys. It reads and writes the structure around those operations: packet framing, key IDs and armor.

## Installation

```
pip install pgpkit
```

To run the tests:

```
pip install "pgpkit[test]"
pytest
```

## Messages

```python
from pgpkit.message import PGPMessage, is_pgp_message

if is_pgp_message(armored_text):
    message = PGPMessage.from_armored(armored_text)
    print(message.hex_encryption_key_ids())   # e.g. ["76ad736fa7e0e83c", ...]
    print(message.number_of_key_packets())
    print(message.armor_with_custom_headers("my comment", ""))  # empty headers are left out
```

- `PGPMessage.from_bytes(data)` splits unarmored data. If the data cannot be parsed as packets, all of it is kept as `data_packet`.
- `PGPMessage.split(key_packet, data_packet)` joins parts that were stored separately.
- `to_bytes()` returns the key packets followed by the data packets.
- `armor()` and `armor_bytes()` raise `ValueError` when `key_packet` is `None`. They leave out the checksum line when `omit_armor_checksum` is set.
- The key-ID methods have the following forms:
  - `encryption_key_ids()` and `signature_key_ids()` return lists of integers.
  - The `hex_...` forms return lists of 16-digit lower-case hex strings.
  - The `..._json` forms return a compact JSON array as bytes, or `None` when there are no IDs.
- `plain_detached_signature()` and `plain_detached_signature_armor()` raise `ValueError` unless a plaintext detached signature is present. `encrypted_detached_signature()` returns a `PGPMessage` or `None`.

`PGPMessageBuffer` collects the parts when they are written separately:

```python
from pgpkit.message import PGPMessageBuffer

buffer = PGPMessageBuffer()
buffer.write_keys(key_packets)
buffer.write(data_packets)
message = buffer.pgp_message(is_plain=False, omit_armor_checksum=False)
```

The module-level `signature_key_ids(data)` and `signature_hex_key_ids(data)` read signer key IDs from one-pass signature and signature packets.

## Packets

```python
from pgpkit.packets import PacketTag, SignaturePacket, iter_packets, key_id_to_hex

for packet in iter_packets(data):
    if packet.tag == PacketTag.SIGNATURE:
        sig = SignaturePacket.parse(packet.body)
        print(sig.creation_time, key_id_to_hex(sig.issuer_key_id or 0))
        for notation in sig.notations:
            print(notation.name, notation.value, notation.is_critical)
```

Each `Packet` carries its `tag`, its `body`, and its `start` and `end` offsets in the input. Malformed or truncated data raises `PacketError`. `encrypted_key_id(body)` and `one_pass_signature_key_id(body)` read the key ID from those packet bodies.

## Armor

```python
from pgpkit.armor import armor, unarmor

text = armor(b"\x01\x02\x03", "PGP SIGNATURE", {"Comment": "example"}, True)
block = unarmor(text)
assert block.block_type == "PGP SIGNATURE"
assert block.body == b"\x01\x02\x03"
```

`unarmor` raises `ArmorError` in these cases:

- there is no block;
- the end line is missing or mismatched;
- the base64 is invalid;
- the checksum does not match.

`crc24(data)` gives the checksum value.

## UTF-8 checking

```python
import io
from pgpkit.utf8check import IncorrectUtf8Error, Utf8CheckWriter

sink = io.BytesIO()
with Utf8CheckWriter(sink) as writer:
    writer.write("你好".encode()[:2])   # a character split across writes is accepted
    writer.write("你好".encode()[2:])
```

The writer passes each write on to the wrapped writer once it has been checked. An invalid sequence raises `IncorrectUtf8Error`, and so does an unfinished character at `close()`.

## Text helpers

- `canonicalize` and `canonicalize_bytes` turn every line ending into CRLF.
- `trim_each_line` and `trim_each_line_bytes` strip trailing spaces, tabs and carriage returns from each line.
- `ResetReader(reader)` remembers what it has read:
  - `reset()` replays that data from the start.
  - After `disable_buffering()`, `reset()` raises `RuntimeError`.
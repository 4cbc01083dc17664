# redirkit

redirkit collects the parts a transparent TCP redirector needs. It can
read its global settings, find where an intercepted connection was going,
open the outgoing connection, and encrypt the stream toward a
shadowsocks-style server.

- `redirkit.base64codec`: Base64 helpers. `encoded_size(length)` gives
  the length of the padded text. `encode(data)` returns padded Base64
  text. `decode(text)` stops at the first `=` (or NUL) and raises
  `ValueError` on any character outside the alphabet.
- `redirkit.avltree`: `AVLTree`, a self-balancing ordered set. It takes
  an optional `key` function and provides `insert`, `find`, `delete`,
  `height`, `len()`, `in` and in-order iteration. `walk()` yields
  `(item, Visit, depth)` tuples, where `Visit` is `PREORDER`,
  `POSTORDER`, `ENDORDER` or `LEAF`.
- `redirkit.ciphers`: cipher primitives.
  - The `Method` enumeration, each member carrying its `cipher_name`
    (such as `aes-256-cfb`).
  - `cipher_spec` gives key and IV sizes, and `is_aead` says whether a
    method is an AEAD method.
  - Key derivation: `md5_table` builds the substitution tables of the
    `table` method, `bytes_to_key` does MD5 password-to-key derivation,
    and `hkdf_sha1` does HKDF-SHA1 with info `ss-subkey`.
  - `make_nonce` builds the 12-byte little-endian nonce.
  - Single AEAD records: `aead_encrypt` and `aead_decrypt`.
  - `new_stream_cipher` creates RC4 and CFB-mode cipher contexts.
- `redirkit.encrypt`: session encryption.
  - `EncryptionInfo.from_password(password, method)` derives the key
    material. `method=None` selects the `table` method.
  - `EncryptionContext` encrypts or decrypts one direction of a stream.
    The first output carries the IV or salt. AEAD methods use chunked
    framing (at most 16383 bytes per chunk) and a per-session
    HKDF-SHA1 subkey.
  - When decrypting AEAD data, an incomplete chunk is kept until the
    rest arrives.
  - `buffer_size(length)` gives an upper bound on output size.
  - A context that has been used to encrypt cannot be used to decrypt,
    and the reverse also holds.
- `redirkit.base`: the `base` configuration section.
  - `BaseConfig.from_section(mapping)` reads `redirector` (`iptables` or
    `generic`), `chroot`, `user`, `group`, `log`, `log_debug`,
    `log_info`, `daemon`, `reuseport` and the three
    `tcp_keepalive_*` timings. It raises `ConfigError` on unknown keys,
    bad values, or a missing or invalid `redirector`.
  - `log_target` gives where logs go.
  - `apply_tcp_keepalive` and `apply_reuseport` tune a socket.
  - `get_destination` returns the original `(host, port)` of a
    redirected socket. It uses `SO_ORIGINAL_DST` for `iptables` and
    `getsockname()` for `generic`.
- `redirkit.direct`: `choose_target` picks the relay address when one is
  set and the destination otherwise. `open_direct_connection` (a
  coroutine) opens an asyncio stream to that target, optionally from a
  local address and with a timeout.

## Installing

Install the package from a checkout with your usual Python packaging tool.
Its only runtime dependency is `cryptography`. The `test` extra adds
`pytest` and `pytest-asyncio`.

## Examples

Base64:

```python
from redirkit.base64codec import encode, decode, encoded_size

text = encode(b"hello")
assert decode(text) == b"hello"
assert encoded_size(5) == len(text)
```

An ordered set:

```python
from redirkit.avltree import AVLTree

tree = AVLTree()
for value in (5, 3, 8, 1):
    tree.insert(value)
assert 3 in tree
tree.delete(3)
print(list(tree), len(tree), tree.height())
```

Encrypting a tunnel stream. Each direction has its own context, and all
contexts share the same `EncryptionInfo`:

```python
from redirkit.encrypt import EncryptionInfo, EncryptionContext

password = "password"
info = EncryptionInfo.from_password(password, "aes-256-gcm")

sender = EncryptionContext(info)
receiver = EncryptionContext(info)

wire = sender.encrypt(b"GET / HTTP/1.1\r\n\r\n")
assert receiver.decrypt(wire) == b"GET / HTTP/1.1\r\n\r\n"
```

Reading the `base` section:

```python
from redirkit.base import BaseConfig, Redirector

config = BaseConfig.from_section({"redirector": "generic", "log_debug": "on"})
assert config.redirector is Redirector.GENERIC
print(config.log_target)  # "stderr"
```

Opening a direct connection:

```python
import asyncio
from redirkit.direct import open_direct_connection

async def main():
    reader, writer = await open_direct_connection(("example.com", 80), timeout=5)
    writer.close()
    await writer.wait_closed()

asyncio.run(main())
```

## Errors

- Unknown method names, corrupted data and failed authentication tags
  raise `redirkit.encrypt.CryptoError`.
- An invalid `base` section raises `redirkit.base.ConfigError`, which is
  a `ValueError`.

## What the package does not do

redirkit is a library of parts. It does not include:

- a listening redirector, a command-line program, or daemonizing.
- an HTTP `CONNECT` or HTTP relay handshake with an upstream proxy.
- support for `Basic` or `Digest` proxy authentication.

If you need any of these, build them yourself on top of these modules.
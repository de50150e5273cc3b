import hashlib
import hmac
import struct
from typing import Literal

import msgspec


FRAME_HEADER = struct.Struct(">I")
MAX_FRAME_SIZE = 64 * 1024


class Hello(msgspec.Struct):
    node: str
    digest: str
    message: Literal['HELLO'] = 'HELLO'


def sign_node_name(node_name: str, cookie: str) -> str:
    return hmac.new(
        cookie.encode(),
        node_name.encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_hello(hello: Hello, cookie: str) -> bool:
    return hmac.compare_digest(
        hello.digest,
        sign_node_name(hello.node, cookie),
    )


def encode_hello(hello: Hello) -> bytes:
    payload = msgspec.msgpack.encode(hello)
    return FRAME_HEADER.pack(len(payload)) + payload


def decode_hello(payload: bytes) -> Hello:
    return msgspec.msgpack.decode(payload, type=Hello)

"""scrypt forwarding into a caller supplied fixed-size destination."""

import hashlib
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def scrypt(destination: Union[bytearray, memoryview], data: BytesLike, salt: BytesLike,
           work: int, resources: int, parallelism: int):
    """Fill ``destination`` with scrypt(data, salt, N=work, r=resources, p=parallelism)."""
    # N * r * 128 字节的工作内存，加上少量余量
    maxmem = 128 * resources * (work + parallelism + 2) + 1024 * 1024
    digest = hashlib.scrypt(bytes(data), salt=bytes(salt), n=work, r=resources,
                            p=parallelism, maxmem=maxmem, dklen=len(destination))
    destination[:] = digest
    return destination


def scrypt_digest(data: BytesLike, salt: BytesLike, work: int, resources: int,
                  parallelism: int, size: int = 64) -> bytes:
    return bytes(scrypt(bytearray(size), data, salt, work, resources, parallelism))

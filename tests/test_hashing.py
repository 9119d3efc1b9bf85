import hashlib

from utfedge.services.utils import scrypt, scrypt_digest


def test_rfc7914_vector():
    digest = scrypt_digest(b'', b'', 16, 1, 1, size=64)
    assert digest[:16].hex() == '77d6576238657b203b19ca42c18a0497'


def test_fills_destination_in_place():
    buf = bytearray(40)
    view = memoryview(buf)[4:36]
    result = scrypt(view, b'password', b'NaCl', 16, 2, 1)
    assert result is view
    assert bytes(buf[4:36]) == hashlib.scrypt(b'password', salt=b'NaCl', n=16, r=2, p=1, dklen=32)
    assert buf[:4] == bytearray(4)
    assert buf[36:] == bytearray(4)

from array import array

import pytest

from utfedge.exceptions import CapacityExceeded, MalformedSequence
from utfedge.services.codec import (
    to_utf16,
    to_utf16_buffer,
    to_utf8,
    to_utf8_buffer,
    wide_from_text,
    wide_to_text,
)

SAMPLE = 'aé€𝄞中文😀z'


def _wide(text):
    return list(wide_from_text(text))


def test_euro_split_across_two_chunks():
    out = array('H', [0]) * 4
    written, truncated = to_utf16_buffer(out, b'\xe2\x82')
    assert (written, truncated) == (0, 2)

    written, truncated = to_utf16_buffer(out, b'\xe2\x82' + b'\xac')
    assert (written, truncated) == (1, 0)
    assert out[0] == 0x20AC


def test_empty_input():
    assert to_utf16_buffer([], b'') == (0, 0)
    assert to_utf8_buffer(bytearray(), []) == 0
    assert to_utf16(b'') == array('H')
    assert to_utf8([]) == b''


def test_entire_input_is_one_incomplete_sequence():
    out = [0] * 4
    assert to_utf16_buffer(out, '😀'.encode('utf-8')[:3]) == (0, 3)
    assert out == [0, 0, 0, 0]


def test_chunk_invariance_for_every_split_point():
    data = SAMPLE.encode('utf-8')
    expected = list(to_utf16(data))
    assert expected == _wide(SAMPLE)

    for split in range(len(data) + 1):
        first = data[:split]
        out1 = [0] * len(first)
        written1, truncated1 = to_utf16_buffer(out1, first)

        second = first[len(first) - truncated1:] + data[split:]
        out2 = [0] * len(second)
        written2, truncated2 = to_utf16_buffer(out2, second)

        assert truncated2 == 0
        assert out1[:written1] + out2[:written2] == expected, split


def test_truncation_count_is_bounded():
    data = SAMPLE.encode('utf-8')
    for end in range(len(data) + 1):
        _, truncated = to_utf16_buffer([0] * end, data[:end])
        assert 0 <= truncated <= 3


def test_surrogate_pair_output():
    out = [0] * 2
    assert to_utf16_buffer(out, '𝄞'.encode('utf-8')) == (2, 0)
    assert out == [0xD834, 0xDD1E]


@pytest.mark.parametrize('data', [
    b'\xff',
    b'a\xe2\x41',
    b'\xc0\xaf',
    b'\xed\xa0\x80',
    b'\xf4\x90\x80\x80',
    b'\x80abc',
])
def test_malformed_utf8_rejected(data):
    with pytest.raises(MalformedSequence):
        to_utf16_buffer([0] * 8, data)


@pytest.mark.parametrize('data, position', [
    (b'\xed\xa0', 0),
    (b'a\xed\xbf', 1),
])
def test_encoded_surrogate_prefix_rejected_at_chunk_end(data, position):
    with pytest.raises(MalformedSequence) as info:
        to_utf16_buffer([0] * 8, data)
    assert info.value.details['position'] == position


def test_valid_three_byte_prefix_after_ed_is_truncated():
    assert to_utf16_buffer([0] * 8, b'a\xed\x9f') == (1, 2)


def test_whole_string_trailing_sequence_is_malformed():
    with pytest.raises(MalformedSequence) as info:
        to_utf16(b'ok\xe2\x82')
    assert info.value.details['position'] == 2


def test_capacity_boundary_narrow_to_wide():
    data = 'héllo€'.encode('utf-8')
    exact = [0] * 6
    assert to_utf16_buffer(exact, data) == (6, 0)

    short = [0] * 5
    with pytest.raises(CapacityExceeded):
        to_utf16_buffer(short, data)
    assert short == [0] * 5


def test_capacity_boundary_wide_to_narrow():
    wide = _wide('héllo😀')
    encoded = 'héllo😀'.encode('utf-8')
    exact = bytearray(len(encoded))
    assert to_utf8_buffer(exact, wide) == len(encoded)
    assert bytes(exact) == encoded

    short = bytearray(len(encoded) - 1)
    with pytest.raises(CapacityExceeded) as info:
        to_utf8_buffer(short, wide)
    assert short == bytearray(len(encoded) - 1)
    assert info.value.code == 'CAPACITY_EXCEEDED'


@pytest.mark.parametrize('wide', [
    [0xD800],
    [0x61, 0xDC00, 0x62],
    [0x61, 0xD83D],
    [0xD83D, 0x61],
    [0x10000],
    [-1],
])
def test_malformed_utf16_rejected(wide):
    with pytest.raises(MalformedSequence):
        to_utf8(wide)


def test_round_trips():
    for text in ['', 'ascii', SAMPLE, 'acción.кошка.日本国', '\U0010FFFF\u0000']:
        narrow = text.encode('utf-8')
        assert to_utf8(to_utf16(narrow)) == narrow
        wide = wide_from_text(text)
        assert to_utf16(to_utf8(wide)) == wide


def test_bounded_views_and_sequence_outputs():
    out = [0] * 4
    assert to_utf16_buffer(out, memoryview(b'ab\xe2')[:2]) == (2, 0)
    assert out == [0x61, 0x62, 0, 0]

    buf = bytearray(b'--------')
    written = to_utf8_buffer(memoryview(buf)[2:], array('H', _wide('é')))
    assert written == 2
    assert buf == b'--\xc3\xa9----'


def test_wide_text_helpers_keep_lone_surrogates():
    assert wide_to_text(wide_from_text('a\udc80')) == 'a\udc80'
    with pytest.raises(MalformedSequence):
        wide_to_text(wide_from_text('a\udc80'), errors='strict')

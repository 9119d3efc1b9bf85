import io

import pytest

from utfedge.cli import main
from utfedge.config.system_settings import Settings
from utfedge.services.stdio import StdioBridge, Utf8Stdio

TEXT = 'a€😀 中文\n'


def _settings() -> Settings:
    settings = Settings()
    settings.WIDE_ENTRY = True
    settings.LOCALE = ''
    return settings


def _run(argv, data=b'', mode='never', environ=None):
    stdin = io.TextIOWrapper(io.BytesIO(data))
    stdout = io.TextIOWrapper(io.BytesIO())
    stderr = io.TextIOWrapper(io.BytesIO())
    stdio = StdioBridge(stdin, stdout, stderr, mode=mode).bind()
    status = main(['utfedge'] + argv, environ or {}, _settings(), stdio)
    return status, stdout.buffer.getvalue()


def test_utf16_with_single_byte_reads():
    status, out = _run(['--chunk-size', '1', 'utf16'], TEXT.encode('utf-8'))
    assert status == 0
    assert out == TEXT.encode('utf-16-le')


def test_utf16_big_endian():
    status, out = _run(['utf16', '--order', 'big'], TEXT.encode('utf-8'))
    assert status == 0
    assert out == TEXT.encode('utf-16-be')


def test_utf8_with_odd_reads_splitting_pairs():
    status, out = _run(['--chunk-size', '3', 'utf8'], TEXT.encode('utf-16-le'))
    assert status == 0
    assert out == TEXT.encode('utf-8')


def test_utf16_truncated_input_fails():
    status, _ = _run(['utf16'], b'a\xe2\x82')
    assert status == 65


def test_utf8_odd_trailing_byte_fails():
    status, _ = _run(['utf8'], b'a\x00b')
    assert status == 65


def test_normalize():
    status, out = _run(['normalize', '--form', 'nfkd'], 'ﬁ'.encode('utf-8'))
    assert status == 0
    assert out == b'fi'


def test_normalize_failure():
    status, _ = _run(['normalize'], b'\xff')
    assert status == 65


def test_args_and_env():
    status, out = _run(['args'])
    assert status == 0
    assert out == b'utfedge\nargs\n'

    status, out = _run(['env'], environ={'NAME': 'José'})
    assert status == 0
    assert out == 'NAME=José\n'.encode('utf-8')


def test_binary_output_refused_on_bridged_stdout():
    stdout = io.StringIO()
    stdio = StdioBridge(io.StringIO(''), stdout, io.StringIO(), mode='always').bind()
    assert main(['utfedge', 'utf16'], {}, _settings(), stdio) == 64


@pytest.mark.parametrize('size', ['0', '-4', 'many'])
def test_bad_chunk_size_is_a_usage_error(size):
    with pytest.raises(SystemExit) as info:
        _run(['--chunk-size', size, 'utf16'], 'héllo'.encode('utf-8'))
    assert info.value.code == 2


class _RecordingInput(io.BytesIO):
    def __init__(self, data):
        super().__init__(data)
        self.sizes = []

    def read(self, size=-1):
        self.sizes.append(size)
        return super().read(size)


def test_chunk_size_defaults_to_settings():
    stdin = _RecordingInput('héllo'.encode('utf-8'))
    stdout = io.BytesIO()
    stdio = Utf8Stdio(stdin, stdout, io.BytesIO())
    settings = _settings()
    settings.CHUNK_SIZE = 2
    assert main(['utfedge', 'utf16'], {}, settings, stdio) == 0
    assert set(stdin.sizes) == {2}
    assert stdout.getvalue() == 'héllo'.encode('utf-16-le')

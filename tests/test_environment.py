import pytest

from utfedge.exceptions import AllocationFailure, MalformedSequence, StateError
from utfedge.models import EnvironmentKind
from utfedge.services.codec import wide_from_text
from utfedge.services.environment import (
    allocate_arguments,
    allocate_environment,
    free_environment,
    host_arguments,
    host_environment,
    live_blocks,
)
from utfedge.services.environment import manager


def _block(*entries):
    return [wide_from_text(e) if e is not None else None for e in entries]


def test_environment_round_trip_preserves_order_and_content():
    entries = ['PATH=/usr/bin', 'LANG=ja_JP.UTF-8', '名前=値 ', 'EMPTY=']
    env = allocate_environment(_block(*entries, None))
    try:
        assert env.kind is EnvironmentKind.ENVIRONMENT
        assert len(env) == 4
        assert list(env) == [e.encode('utf-8') for e in entries]
        assert env.as_array()[-1] is None
        assert env.as_mapping() == {
            b'PATH': b'/usr/bin',
            b'LANG': b'ja_JP.UTF-8',
            '名前'.encode('utf-8'): '値 '.encode('utf-8'),
            b'EMPTY': b'',
        }
    finally:
        free_environment(env)


def test_environment_stops_at_terminator():
    env = allocate_environment(_block('A=1', None, 'B=2'))
    assert env.count == 1
    env.release()


def test_drive_entries_keep_leading_equals():
    with allocate_environment(_block('=C:=C:\\work', None)) as env:
        assert env.as_mapping() == {b'=C:': b'C:\\work'}


def test_arguments_are_counted():
    args = allocate_arguments(2, _block('prog', '--name=José', 'ignored'))
    assert args.kind is EnvironmentKind.ARGUMENTS
    assert args.as_array() == [b'prog', '--name=José'.encode('utf-8')]
    assert args[1].decode('utf-8') == '--name=José'
    with pytest.raises(StateError):
        args.as_mapping()
    args.release()


def test_empty_argument_vector():
    args = allocate_arguments(0, [])
    assert len(args) == 0
    assert args.as_array() == []
    args.release()


def test_argc_out_of_range():
    with pytest.raises(ValueError):
        allocate_arguments(3, _block('prog'))


def test_failed_entry_leaves_nothing_allocated():
    before = live_blocks()
    bad = _block('A=1', 'B=\udc80', 'C=3', None)
    with pytest.raises(MalformedSequence) as info:
        allocate_environment(bad)
    assert info.value.details['index'] == 1
    assert live_blocks() == before


def test_allocation_failure_rolls_back(monkeypatch):
    calls = []
    real = manager.to_utf8

    def flaky(wide):
        calls.append(wide)
        if len(calls) == 2:
            raise MemoryError()
        return real(wide)

    monkeypatch.setattr(manager, 'to_utf8', flaky)
    before = live_blocks()
    with pytest.raises(AllocationFailure) as info:
        allocate_arguments(3, _block('a', 'b', 'c'))
    assert info.value.details == {'index': 1}
    assert live_blocks() == before


def test_release_is_consuming():
    env = allocate_environment(_block('A=1', None))
    free_environment(env)
    assert env.released
    with pytest.raises(StateError):
        free_environment(env)
    with pytest.raises(StateError):
        env[0]
    with pytest.raises(StateError):
        list(env)


def test_context_manager_releases():
    with allocate_arguments(1, _block('prog')) as args:
        assert args[0] == b'prog'
    assert args.released


def test_repeated_allocation_does_not_leak():
    before = live_blocks()
    block = _block('PATH=/bin', 'HOME=/home/ユーザー', None)
    for _ in range(200):
        env = allocate_environment(block)
        assert live_blocks() == before + 1
        env.release()
    assert live_blocks() == before


def test_host_sources():
    argc, argv = host_arguments(['prog', 'ü'])
    assert argc == 2
    with allocate_arguments(argc, argv) as args:
        assert list(args) == [b'prog', 'ü'.encode('utf-8')]

    wide = host_environment({'GREETING': 'こんにちは'})
    assert wide[-1] is None
    with allocate_environment(wide) as env:
        assert env.as_mapping() == {b'GREETING': 'こんにちは'.encode('utf-8')}

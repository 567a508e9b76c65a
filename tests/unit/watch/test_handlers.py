from watchdog.events import (
    DirDeletedEvent,
    DirModifiedEvent,
    FileClosedNoWriteEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)

from treewatch.watch.events import RawSignal
from treewatch.watch.handlers import SignalHandler


def make_handler(node_path, watch_path):
    received = []
    return SignalHandler(node_path, watch_path, received.append), received


def test_directory_child_event_carries_child_name():
    handler, received = make_handler('/home/a', '/home/a')
    handler.dispatch(FileCreatedEvent('/home/a/file3'))
    assert received == [RawSignal('/home/a', 'file3', 'created')]


def test_directory_self_event_has_no_child():
    handler, received = make_handler('/home/a', '/home/a')
    handler.dispatch(DirModifiedEvent('/home/a'))
    assert received == [RawSignal('/home/a', None, 'modified')]


def test_move_produces_source_and_destination_signals():
    handler, received = make_handler('/home/a', '/home/a')
    handler.dispatch(FileMovedEvent('/home/a/file1', '/home/a/file9'))
    assert received == [
        RawSignal('/home/a', 'file1', 'moved'),
        RawSignal('/home/a', 'file9', 'moved'),
    ]


def test_access_events_are_ignored():
    handler, received = make_handler('/home/a', '/home/a')
    handler.dispatch(FileOpenedEvent('/home/a/file1'))
    handler.dispatch(FileClosedNoWriteEvent('/home/a/file1'))
    assert received == []


def test_file_node_only_forwards_its_own_path():
    handler, received = make_handler('/home/a/file1', '/home/a')
    handler.dispatch(FileModifiedEvent('/home/a/file2'))
    handler.dispatch(DirModifiedEvent('/home/a'))
    handler.dispatch(FileModifiedEvent('/home/a/file1'))
    assert received == [RawSignal('/home/a/file1', None, 'modified')]


def test_file_node_forwards_parent_deletion():
    handler, received = make_handler('/home/a/file1', '/home/a')
    handler.dispatch(DirDeletedEvent('/home/a'))
    assert received == [RawSignal('/home/a/file1', None, 'deleted')]


def test_file_node_sees_atomic_replace():
    handler, received = make_handler('/home/a/file1', '/home/a')
    handler.dispatch(FileMovedEvent('/home/a/.file1.tmp', '/home/a/file1'))
    assert received == [RawSignal('/home/a/file1', None, 'moved')]


def test_inactive_handler_drops_events():
    handler, received = make_handler('/home/a', '/home/a')
    handler.active = False
    handler.dispatch(FileModifiedEvent('/home/a/file1'))
    assert received == []

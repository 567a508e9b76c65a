import os
import shutil
import threading
import time

import pytest

from treewatch.watch import watch
from treewatch.watch.errors import WatchArmFailedError
from treewatch.watch.events import RawSignal


class Tree(object):
    LAYOUT = [
        'home/a/file1',
        'home/a/file2',
        'home/b/file1',
        'home/b/file2',
        'home/c/file1',
        'home/deep/d1/d2/file1',
        'home/node_modules/ma/file1',
        'home/node_modules/mb/file1',
    ]

    def __init__(self, base):
        self.base = str(base)
        for rel in self.LAYOUT:
            self.new_file(rel)

    def path(self, rel):
        return os.path.join(self.base, *rel.split('/'))

    def new_file(self, rel, contents='init'):
        path = self.path(rel)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as f:
            f.write(contents)
        return path

    def modify(self, rel):
        with open(self.path(rel), 'w') as f:
            f.write('modified %s' % time.time())

    def mkdir(self, rel):
        os.makedirs(self.path(rel))

    def remove(self, rel):
        path = self.path(rel)
        if os.path.isdir(path):
            shutil.rmtree(path)
        else:
            os.unlink(path)


class EventRecorder(object):
    """Thread-safe change callback"""

    def __init__(self):
        self.events = []
        self._cond = threading.Condition()

    def __call__(self, kind, path):
        with self._cond:
            self.events.append((kind, path))
            self._cond.notify_all()

    def wait_for(self, predicate, timeout=5.0):
        with self._cond:
            return self._cond.wait_for(lambda: predicate(self.events), timeout)

    def wait_for_event(self, kind, path, timeout=5.0):
        return self.wait_for(lambda events: (kind, path) in events, timeout)

    def count(self, kind=None, path=None):
        with self._cond:
            return len([
                e for e in self.events
                if (kind is None or e[0] == kind) and (path is None or e[1] == path)
            ])

    def paths(self):
        with self._cond:
            return [path for _, path in self.events]


class FakeHandle(object):
    def __init__(self, path, on_signal):
        self.path = path
        self.on_signal = on_signal


class FakeBinding(object):
    """In-memory primitive binding; signals are injected by tests"""

    def __init__(self):
        self.armed = {}
        self.disarmed = []
        self.fail = set()
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self, timeout=None):
        self.stopped = True

    def arm(self, path, on_signal):
        if path in self.fail or not os.path.exists(path):
            raise WatchArmFailedError(path, 'refused by test')
        handle = FakeHandle(path, on_signal)
        self.armed[path] = handle
        return handle

    def disarm(self, handle):
        if self.armed.pop(handle.path, None) is not None:
            self.disarmed.append(handle.path)

    def signal(self, node_path, child=None, kind='modified'):
        self.armed[node_path].on_signal(RawSignal(node_path, child, kind))


@pytest.fixture
def tree(tmp_path):
    return Tree(tmp_path)


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def fake_binding():
    return FakeBinding()


@pytest.fixture
def start_watch():
    created = []

    def factory(*args, **kwargs):
        watcher = watch(*args, **kwargs)
        created.append(watcher)
        return watcher

    yield factory
    for watcher in created:
        watcher.close()

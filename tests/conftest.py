"""Pytest configuration for pagedeck tests.

Provides a deferred executor and a manual main-loop dispatcher so worker
continuations can be run in a chosen order without threads or GLib.
"""

from concurrent.futures import Executor, Future

import pytest


class DeferredExecutor(Executor):
    """Executor that queues submitted work until ``run_all`` / ``run_next``."""

    def __init__(self):
        self.queue = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.queue.append((future, fn, args, kwargs))
        return future

    def run_next(self):
        future, fn, args, kwargs = self.queue.pop(0)
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)

    def run_all(self):
        while self.queue:
            self.run_next()

    def shutdown(self, wait=True, *, cancel_futures=False):
        if cancel_futures:
            self.queue.clear()


class ManualDispatcher:
    """Stand-in for GLib.idle_add: collects callbacks until ``flush``."""

    def __init__(self):
        self.pending = []

    def __call__(self, callback):
        self.pending.append(callback)

    def flush(self):
        while self.pending:
            self.pending.pop(0)()


@pytest.fixture
def executor():
    return DeferredExecutor()


@pytest.fixture
def dispatcher():
    return ManualDispatcher()

"""Tests for the preview session: fetch ordering, cancellation and errors."""

from unittest.mock import MagicMock

import pytest

from pagedeck.editor.manifest import Manifest
from pagedeck.editor.page_model import DocumentIdentity, PageCollection, PageEntry
from pagedeck.editor.preview_session import PreviewSession, SessionState
from pagedeck.editor.selection import SelectionController
from pagedeck.editor.virtualizer import ViewportSpec, ViewportVirtualizer
from pagedeck.utils.exceptions import LoadFailure

DOC_A = DocumentIdentity("a.pdf", 100, 1.0)
DOC_B = DocumentIdentity("b.pdf", 200, 2.0)


def _manifest(*numbers, prefix="a"):
    return Manifest(pages=tuple(PageEntry(n, f"/{prefix}/{n}.png") for n in numbers))


@pytest.fixture
def fetcher():
    manifests = {"a.pdf": _manifest(1, 2, 3), "b.pdf": _manifest(1, 2, prefix="b")}
    return MagicMock(side_effect=lambda path: manifests[path])


@pytest.fixture
def session(fetcher, executor, dispatcher):
    return PreviewSession(
        fetcher,
        collection=PageCollection(),
        selection=SelectionController(),
        virtualizer=ViewportVirtualizer(ViewportSpec(1000, 800)),
        dispatch=dispatcher,
        executor=executor,
    )


def _finish(executor, dispatcher):
    executor.run_all()
    dispatcher.flush()


class TestLoading:
    def test_successful_fetch_hydrates(self, session, executor, dispatcher):
        states = []
        session.subscribe(lambda snap: states.append(snap.state))
        assert session.start("a.pdf", DOC_A) is True
        assert session.state == SessionState.LOADING
        assert session.in_flight

        _finish(executor, dispatcher)

        assert states == [SessionState.LOADING, SessionState.READY]
        assert session.collection.page_numbers() == [1, 2, 3]
        assert session.virtualizer.page_count == 3
        assert not session.in_flight

    def test_same_document_in_flight_is_ignored(self, session, fetcher, executor, dispatcher):
        session.start("a.pdf", DOC_A)
        assert session.start("a.pdf", DOC_A) is False
        _finish(executor, dispatcher)
        fetcher.assert_called_once_with("a.pdf")

    def test_reloading_same_document_keeps_edits(self, session, executor, dispatcher):
        session.start("a.pdf", DOC_A)
        _finish(executor, dispatcher)
        session.collection.rotate_right(2)
        session.selection.click(1)

        assert session.start("a.pdf", DOC_A) is True
        _finish(executor, dispatcher)

        assert session.state == SessionState.READY
        assert session.collection.get(2).rotation == 90
        assert session.selection.selected() == [1]


class TestSupersede:
    def test_superseded_fetch_never_hydrates(self, session, fetcher, executor, dispatcher):
        session.start("a.pdf", DOC_A)
        # The first fetch completes but its continuation is still queued
        executor.run_next()
        session.start("b.pdf", DOC_B)
        _finish(executor, dispatcher)

        assert session.identity == DOC_B
        assert [e.image_reference for e in session.collection] == ["/b/1.png", "/b/2.png"]
        assert session.state == SessionState.READY

    def test_cancelled_fetch_is_skipped(self, session, fetcher, executor, dispatcher):
        session.start("a.pdf", DOC_A)
        session.start("b.pdf", DOC_B)
        _finish(executor, dispatcher)
        fetcher.assert_called_once_with("b.pdf")

    def test_switching_documents_clears_state(self, session, executor, dispatcher):
        session.start("a.pdf", DOC_A)
        _finish(executor, dispatcher)
        session.selection.click(2)
        session.virtualizer.mark_errored("/a/1.png")

        session.start("b.pdf", DOC_B)
        assert len(session.collection) == 0
        assert session.selection.selected() == []
        assert session.virtualizer.state("/a/1.png").errored is False


class TestCancellationAndErrors:
    def test_cancel_is_not_an_error(self, session, executor, dispatcher):
        session.start("a.pdf", DOC_A)
        session.cancel()
        _finish(executor, dispatcher)

        assert session.state == SessionState.IDLE
        assert session.error is None
        assert len(session.collection) == 0

    def test_cancel_without_fetch_is_noop(self, session):
        states = []
        session.subscribe(lambda snap: states.append(snap.state))
        session.cancel()
        assert states == []

    def test_load_failure_sets_error(self, session, fetcher, executor, dispatcher):
        fetcher.side_effect = LoadFailure("Invalid PDF preview response")
        session.start("a.pdf", DOC_A)
        _finish(executor, dispatcher)

        assert session.state == SessionState.ERROR
        assert session.error == "Invalid PDF preview response"
        assert len(session.collection) == 0

    def test_unexpected_error_is_wrapped(self, session, fetcher, executor, dispatcher):
        fetcher.side_effect = RuntimeError("socket closed")
        session.start("a.pdf", DOC_A)
        _finish(executor, dispatcher)

        assert session.state == SessionState.ERROR
        assert session.error == "Failed to load preview"

    def test_stale_error_ignored(self, session, fetcher, executor, dispatcher):
        fetcher.side_effect = [LoadFailure("first failed"), _manifest(1, prefix="b")]
        session.start("a.pdf", DOC_A)
        executor.run_next()
        session.start("b.pdf", DOC_B)
        _finish(executor, dispatcher)

        assert session.state == SessionState.READY
        assert session.error is None

    def test_retry_after_error(self, session, fetcher, executor, dispatcher):
        fetcher.side_effect = [LoadFailure("boom"), _manifest(1, 2)]
        session.start("a.pdf", DOC_A)
        _finish(executor, dispatcher)
        assert session.state == SessionState.ERROR

        assert session.start("a.pdf", DOC_A) is True
        _finish(executor, dispatcher)
        assert session.state == SessionState.READY
        assert session.collection.page_numbers() == [1, 2]

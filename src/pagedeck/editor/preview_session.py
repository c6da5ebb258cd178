"""
PageDeck - Preview Session

Owns one in-flight page manifest fetch for the selected source document.
The blocking fetch runs on a worker thread; its continuation is dispatched
back to the main loop and checks a cancellation token before touching any
shared state, so a superseded fetch can never populate the model.
"""

import threading
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum

from pagedeck.editor.manifest import Manifest
from pagedeck.editor.page_model import DocumentIdentity, PageCollection
from pagedeck.editor.selection import SelectionController
from pagedeck.editor.virtualizer import ViewportVirtualizer
from pagedeck.utils.exceptions import LoadFailure, PageDeckError
from pagedeck.utils.i18n import _
from pagedeck.utils.logger import logger
from pagedeck.utils.main_loop import Dispatcher, glib_dispatch

ManifestFetcher = Callable[[str], Manifest]


class SessionState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class SessionSnapshot:
    state: SessionState
    error: str | None
    page_count: int
    identity: DocumentIdentity | None


SessionListener = Callable[[SessionSnapshot], None]


class CancellationToken:
    """Flag shared between a fetch and its continuations."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


class PreviewSession:
    """Loads the page manifest of one document at a time.

    Starting a different document cancels the previous fetch and discards
    the previous pages and selection. Starting the same document while its
    fetch is in flight does nothing. Cancellation never surfaces as an error.
    """

    def __init__(
        self,
        fetch_manifest: ManifestFetcher,
        collection: PageCollection | None = None,
        selection: SelectionController | None = None,
        virtualizer: ViewportVirtualizer | None = None,
        dispatch: Dispatcher | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            fetch_manifest: Blocking callable returning the manifest of a document path
            collection: Page collection to hydrate (a new one by default)
            selection: Selection to clear when the document changes
            virtualizer: Virtualizer to notify of the new page count
            dispatch: Schedules a callable on the main loop (GLib by default)
            executor: Worker pool for the fetch (a private pool by default)
        """
        self._fetch_manifest = fetch_manifest
        self.collection = collection if collection is not None else PageCollection()
        self.selection = selection
        self.virtualizer = virtualizer
        self._dispatch = dispatch or glib_dispatch
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="pagedeck-preview"
        )

        self._identity: DocumentIdentity | None = None
        self._token: CancellationToken | None = None
        self._state = SessionState.IDLE
        self._error: str | None = None
        self._listeners: list[SessionListener] = []

    # --- State ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def identity(self) -> DocumentIdentity | None:
        return self._identity

    @property
    def in_flight(self) -> bool:
        return self._token is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            error=self._error,
            page_count=len(self.collection),
            identity=self._identity,
        )

    def _set_state(self, state: SessionState, error: str | None = None) -> None:
        self._state = state
        self._error = error
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # --- Lifecycle ---

    def start(self, path: str, identity: DocumentIdentity | None = None) -> bool:
        """Begin loading the manifest of ``path``.

        Args:
            path: Source document path handed to the fetcher
            identity: Identity of the document; read from the file when omitted

        Returns:
            True if a fetch was issued, False if one for this document is in flight
        """
        if identity is None:
            identity = DocumentIdentity.from_path(path)

        if self._token is not None and identity == self._identity:
            logger.debug(f"Preview already loading for {identity.name}")
            return False

        self._cancel_token()

        if identity != self._identity:
            self._switch_document(identity)

        token = CancellationToken()
        self._token = token
        self._set_state(SessionState.LOADING)
        logger.info(f"Loading preview for {identity.name}")

        self._executor.submit(self._fetch_worker, path, token)
        return True

    def cancel(self) -> None:
        """Abandon the in-flight fetch without reporting an error."""
        if self._cancel_token():
            self._set_state(SessionState.IDLE)

    def shutdown(self) -> None:
        """Cancel any fetch and release the worker pool if the session owns it."""
        self._cancel_token()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _cancel_token(self) -> bool:
        if self._token is None:
            return False
        self._token.cancel()
        self._token = None
        logger.debug("Superseded preview fetch cancelled")
        return True

    def _switch_document(self, identity: DocumentIdentity) -> None:
        """Discard the previous document's pages, selection and lazy-load state."""
        self._identity = identity
        self.collection.clear()
        if self.selection is not None:
            self.selection.bind_identity(identity)
        if self.virtualizer is not None:
            self.virtualizer.reset()
            self.virtualizer.set_page_count(0)

    # --- Worker / continuations ---

    def _fetch_worker(self, path: str, token: CancellationToken) -> None:
        """Worker thread: fetch the manifest and hand the result to the main loop."""
        if token.cancelled:
            return
        try:
            manifest = self._fetch_manifest(path)
        except PageDeckError as e:
            error = e
            self._dispatch(lambda: self._finish_error(token, error))
            return
        except Exception as e:
            logger.error(f"Unexpected preview error for {path}: {e}")
            error = LoadFailure(_("Failed to load preview"), source=path)
            self._dispatch(lambda: self._finish_error(token, error))
            return

        self._dispatch(lambda: self._finish_success(token, manifest))

    def _is_current(self, token: CancellationToken) -> bool:
        return not token.cancelled and token is self._token

    def _finish_success(self, token: CancellationToken, manifest: Manifest) -> None:
        if not self._is_current(token):
            return
        self._token = None

        self.collection.hydrate(manifest.entries())
        if self.virtualizer is not None:
            self.virtualizer.set_page_count(len(self.collection))
        self._set_state(SessionState.READY)

    def _finish_error(self, token: CancellationToken, error: PageDeckError) -> None:
        if not self._is_current(token):
            return
        self._token = None

        logger.error(f"Preview failed: {error}")
        self._set_state(SessionState.ERROR, error.message)

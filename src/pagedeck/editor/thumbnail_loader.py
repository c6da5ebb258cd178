"""
PageDeck - Thumbnail Loader

Fetches page thumbnails by image reference on a bounded thread pool,
decodes and scales them with Pillow, and keeps the results in an LRU cache.
Results are delivered on the main loop; a failed image is reported once
and never retried automatically.
"""

import io
import threading
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor

from PIL import Image, UnidentifiedImageError

from pagedeck.constants import (
    DEFAULT_THUMBNAIL_CACHE_SIZE,
    DEFAULT_THUMBNAIL_WIDTH_PX,
    DEFAULT_THUMBNAIL_WORKERS,
)
from pagedeck.utils.config_manager import ConfigManager
from pagedeck.utils.exceptions import ImageLoadFailure, PageDeckError
from pagedeck.utils.logger import logger
from pagedeck.utils.main_loop import Dispatcher, glib_dispatch

ThumbnailCallback = Callable[[str, Image.Image | None, PageDeckError | None], None]


def decode_thumbnail(data: bytes, width: int, image_reference: str = "<bytes>") -> Image.Image:
    """Decode image bytes and scale them down to ``width`` pixels wide.

    Raises:
        ImageLoadFailure: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            image = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadFailure(image_reference, str(e)) from e

    if image.width > width:
        height = max(1, round(image.height * width / image.width))
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    return image


def apply_rotation(image: Image.Image, rotation: int) -> Image.Image:
    """Rotate an image clockwise by a quarter-turn multiple."""
    rot = rotation % 360
    if rot == 90:
        return image.transpose(Image.Transpose.ROTATE_270)
    elif rot == 180:
        return image.transpose(Image.Transpose.ROTATE_180)
    elif rot == 270:
        return image.transpose(Image.Transpose.ROTATE_90)
    return image


def to_png_bytes(image: Image.Image) -> bytes:
    """Encode an image as PNG, the format GTK textures load from memory."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class ThumbnailLoader:
    """Loads thumbnails with caching and de-duplicated in-flight requests."""

    def __init__(
        self,
        fetch_bytes: Callable[[str], bytes],
        width: int = DEFAULT_THUMBNAIL_WIDTH_PX,
        cache_size: int = DEFAULT_THUMBNAIL_CACHE_SIZE,
        max_workers: int = DEFAULT_THUMBNAIL_WORKERS,
        dispatch: Dispatcher | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Initialize the thumbnail loader.

        Args:
            fetch_bytes: Blocking callable returning the raw bytes of a reference
            width: Thumbnail width in pixels
            cache_size: Maximum number of thumbnails to cache
            max_workers: Size of the private worker pool
            dispatch: Schedules a callable on the main loop (GLib by default)
            executor: Worker pool to use instead of a private one
        """
        self._fetch_bytes = fetch_bytes
        self._width = width
        self._cache: OrderedDict[str, Image.Image] = OrderedDict()
        self._cache_size = cache_size
        self._lock = threading.Lock()
        self._pending: set[str] = set()
        self._failed: set[str] = set()
        self._generation = 0
        self._dispatch = dispatch or glib_dispatch
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pagedeck-thumb"
        )

    @classmethod
    def from_config(
        cls, fetch_bytes: Callable[[str], bytes], config: ConfigManager
    ) -> "ThumbnailLoader":
        return cls(
            fetch_bytes,
            width=config.get_int("thumbnails.width", DEFAULT_THUMBNAIL_WIDTH_PX, 1),
            cache_size=config.get_int("thumbnails.cache_size", DEFAULT_THUMBNAIL_CACHE_SIZE, 1),
            max_workers=config.get_int("thumbnails.workers", DEFAULT_THUMBNAIL_WORKERS, 1),
        )

    def _get_cache_key(self, image_reference: str) -> str:
        return f"{image_reference}:{self._width}"

    def _evict_cache(self) -> None:
        """Evict oldest items from cache."""
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)

    def cached(self, image_reference: str) -> Image.Image | None:
        with self._lock:
            key = self._get_cache_key(image_reference)
            image = self._cache.get(key)
            if image is not None:
                self._cache.move_to_end(key)
            return image

    def has_failed(self, image_reference: str) -> bool:
        with self._lock:
            return image_reference in self._failed

    def request(self, image_reference: str, callback: ThumbnailCallback) -> bool:
        """Load a thumbnail asynchronously.

        Args:
            image_reference: Opaque reference from the page manifest
            callback: Called on the main loop with (reference, image, error)

        Returns:
            True if work was scheduled, False for a cache hit, a duplicate
            in-flight request, or a reference that already failed
        """
        cache_key = self._get_cache_key(image_reference)
        hit: Image.Image | None = None

        with self._lock:
            if image_reference in self._failed:
                return False
            if cache_key in self._cache:
                self._cache.move_to_end(cache_key)
                hit = self._cache[cache_key]
            elif cache_key in self._pending:
                return False
            else:
                self._pending.add(cache_key)
            generation = self._generation

        if hit is not None:
            self._dispatch(lambda: callback(image_reference, hit, None))
            return False

        self._executor.submit(self._load_worker, image_reference, cache_key, callback, generation)
        return True

    def _load_worker(
        self,
        image_reference: str,
        cache_key: str,
        callback: ThumbnailCallback,
        generation: int,
    ) -> None:
        """Worker thread: fetch, decode, cache, then notify on the main loop.

        Results that finish after ``clear()`` belong to the previous document
        and are dropped.
        """
        try:
            data = self._fetch_bytes(image_reference)
            image = decode_thumbnail(data, self._width, image_reference)
        except PageDeckError as e:
            self._fail(image_reference, cache_key, callback, e, generation)
            return
        except Exception as e:
            logger.error(f"Thumbnail worker error: {e}")
            error = ImageLoadFailure(image_reference, str(e))
            self._fail(image_reference, cache_key, callback, error, generation)
            return

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Dropping stale thumbnail {image_reference}")
                return
            self._cache[cache_key] = image
            self._pending.discard(cache_key)
            self._evict_cache()

        self._dispatch(lambda: callback(image_reference, image, None))

    def _fail(
        self,
        image_reference: str,
        cache_key: str,
        callback: ThumbnailCallback,
        error: PageDeckError,
        generation: int,
    ) -> None:
        logger.error(f"Failed to load thumbnail {image_reference}: {error}")
        with self._lock:
            if generation != self._generation:
                return
            self._pending.discard(cache_key)
            self._failed.add(image_reference)
        self._dispatch(lambda: callback(image_reference, None, error))

    def clear(self) -> None:
        """Drop cached thumbnails, failure records and in-flight work (new document)."""
        with self._lock:
            self._generation += 1
            self._cache.clear()
            self._failed.clear()
            self._pending.clear()

    def shutdown(self) -> None:
        """Stop the private worker pool."""
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

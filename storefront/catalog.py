"""Catalog query pipeline: full listing, debounced search and genre filter."""
import asyncio
import logging
from typing import List, Optional

from storefront.errors import RemoteFailure
from storefront.models import Book
from storefront.parse import deduplicate_books
from storefront.sorting import DEFAULT_SORT_KEY, sort_books

logger = logging.getLogger(__name__)

ALL_GENRES = "all"
CATALOG_UNAVAILABLE = "Catalog unavailable"


class CatalogQueryEngine:
    """
    Keeps one displayed result set in step with three remote query modes.

    Every request that may replace the result set takes a generation number
    when it is issued. A response is applied only while its generation is
    still the latest, so a slow search can never overwrite a newer filter or
    listing regardless of which reply arrives first. Search and filter are
    separate server queries and are never intersected locally.
    """

    def __init__(self, client, debounce: float = 0.5):
        """
        Args:
            client: An ``AsyncStoreClient`` (or anything with the same
                ``get_books``/``search_books``/``filter_books`` coroutines)
            debounce: Seconds the search term must be stable before querying
        """
        self.client = client
        self.debounce = debounce

        self.search_term = ""
        self.genre_filter = ALL_GENRES
        self.sort_key = DEFAULT_SORT_KEY

        self.catalog: List[Book] = []
        self.result_set: List[Book] = []
        self.error: Optional[str] = None
        self.loading = False
        self.searching = False

        self._filter_results: List[Book] = []
        self._filter_genre: Optional[str] = None
        self._generation = 0
        self._latest_mode: Optional[str] = None
        self._latest_done = True
        self._search_task: Optional[asyncio.Task] = None
        self._refilter_task: Optional[asyncio.Task] = None
        self._closed = False

    # -- generation bookkeeping -------------------------------------------

    def _issue(self, mode: str) -> int:
        self._generation += 1
        self._latest_mode = mode
        self._latest_done = False
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _apply(self, generation: int, books: List[Book], mode: str) -> bool:
        if not self._is_current(generation):
            logger.info(f"Discarding superseded {mode} response (generation {generation})")
            return False
        self.result_set = list(books)
        self.error = None
        self._latest_done = True
        return True

    def _fail(self, generation: int, message: str, clear: bool = False) -> None:
        if not self._is_current(generation):
            return
        self.error = message
        self._latest_done = True
        if clear:
            self.result_set = []

    # -- derived views ------------------------------------------------------

    @property
    def genres(self) -> List[str]:
        """``"all"`` followed by each non-empty catalog genre, first-seen order."""
        seen = []
        for book in self.catalog:
            if book.genre and book.genre not in seen:
                seen.append(book.genre)
        return [ALL_GENRES] + seen

    @property
    def visible_books(self) -> List[Book]:
        return sort_books(self.result_set, self.sort_key)

    @property
    def has_active_filters(self) -> bool:
        return (
            bool(self.search_term)
            or self.genre_filter != ALL_GENRES
            or self.sort_key != DEFAULT_SORT_KEY
        )

    def _base_results(self) -> List[Book]:
        if self.genre_filter != ALL_GENRES:
            return self._filter_results
        return self.catalog

    def _search_active(self) -> bool:
        return bool(self.search_term.strip())

    # -- query modes --------------------------------------------------------

    async def load_catalog(self) -> List[Book]:
        """
        Fetch the full catalog.

        The cache is always refreshed; the displayed set only when no search
        or genre filter is active. On failure the displayed set is emptied.
        """
        if self._closed:
            return []

        owns_results = not self._search_active() and self.genre_filter == ALL_GENRES
        generation = self._issue("load") if owns_results else None

        self.loading = True
        try:
            books = deduplicate_books(await self.client.get_books())
        except RemoteFailure as e:
            logger.error(f"Catalog load failed: {e.message}")
            if generation is not None:
                self._fail(generation, CATALOG_UNAVAILABLE, clear=True)
            return []
        finally:
            self.loading = False

        if self._closed:
            return []

        self.catalog = books
        logger.info(f"Loaded {len(books)} books")
        if generation is not None:
            self._apply(generation, books, "load")
        return books

    def set_search_term(self, term: str) -> None:
        """
        Record a keystroke in the search box.

        A blank term reverts the result set immediately. Anything else
        (re)starts the debounce timer; a pending or in-flight search for an
        older term is cancelled. Must be called with an event loop running.
        """
        if self._closed:
            return

        self.search_term = term
        self._cancel_search()

        if not term.strip():
            self._revert_to_base()
            return

        self._search_task = asyncio.ensure_future(self._debounced_search(term))

    async def _debounced_search(self, term: str) -> None:
        await asyncio.sleep(self.debounce)
        await self.search(term)

    async def search(self, term: str) -> List[Book]:
        """Run a remote search now and apply it if nothing newer was issued."""
        if self._closed:
            return []

        generation = self._issue("search")
        self.searching = True
        try:
            books = deduplicate_books(await self.client.search_books(term))
        except RemoteFailure as e:
            logger.error(f"Search for {term!r} failed: {e.message}")
            self._fail(generation, f"Search failed: {e.message}")
            return []
        finally:
            self.searching = False

        self._apply(generation, books, "search")
        return books

    async def set_genre_filter(self, genre: str) -> List[Book]:
        """
        Switch the genre filter.

        ``"all"`` shows the cached catalog; any other genre is queried on the
        server and its reply replaces the result set.
        """
        if self._closed:
            return []

        self.genre_filter = genre or ALL_GENRES

        if self.genre_filter == ALL_GENRES:
            self._filter_results = []
            self._filter_genre = None
            generation = self._issue("filter")
            self._apply(generation, self.catalog, "filter")
            return self.catalog

        genre = self.genre_filter
        generation = self._issue("filter")
        self.loading = True
        try:
            books = deduplicate_books(await self.client.filter_books(genre))
        except RemoteFailure as e:
            logger.error(f"Filter by {genre!r} failed: {e.message}")
            self._fail(generation, f"Filter failed: {e.message}")
            return []
        finally:
            self.loading = False

        if not self._closed and genre == self.genre_filter:
            # kept even when superseded; a cleared search falls back to it
            self._filter_results = list(books)
            self._filter_genre = genre
        self._apply(generation, books, "filter")
        return books

    def set_sort_key(self, sort_key: str) -> None:
        self.sort_key = sort_key

    async def reset_filters(self) -> None:
        """Clear the search, show every genre and sort by title."""
        self.search_term = ""
        self._cancel_search()
        self.sort_key = DEFAULT_SORT_KEY
        await self.set_genre_filter(ALL_GENRES)

    def _revert_to_base(self) -> None:
        # An unanswered filter request is already the newest intent; its
        # reply will set the result set.
        if self._latest_mode == "filter" and not self._latest_done:
            return
        if self.genre_filter != ALL_GENRES and self._filter_genre != self.genre_filter:
            # no reply for this genre was kept; ask the server again
            self._refilter_task = asyncio.ensure_future(self.set_genre_filter(self.genre_filter))
            return
        generation = self._issue("revert")
        self._apply(generation, self._base_results(), "revert")

    def _cancel_search(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None

    async def wait_for_search(self) -> None:
        """Wait for the pending debounced search, if any, to finish."""
        task = self._search_task
        if task is None:
            return
        # returns once the task is done, cancelled included
        await asyncio.wait([task])

    def close(self) -> None:
        """Tear down: cancel pending work; later replies change nothing."""
        self._closed = True
        self._cancel_search()
        if self._refilter_task is not None and not self._refilter_task.done():
            self._refilter_task.cancel()

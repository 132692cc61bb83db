"""Process-wide adapter around the pymorphy3 morphological analyzer."""

from __future__ import annotations

import importlib
import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import lru_cache
from typing import Any, Callable, Optional

from site_scraper.core.config import get_settings

logger = logging.getLogger(__name__)

SELF_TEST_WORD = "планшеты"

UNINITIALIZED = "uninitialized"
INITIALIZING = "initializing"
READY = "ready"
DEGRADED = "degraded"


def load_morph_analyzer() -> Any:
    """Instantiate pymorphy3's analyzer; dictionaries are loaded on first call."""
    pymorphy3 = importlib.import_module("pymorphy3")
    return pymorphy3.MorphAnalyzer()


class Lemmatizer:
    """Lazily initialised lemmatizer with a bounded, one-shot initialisation.

    The first caller starts initialisation on a daemon thread; every caller,
    including concurrent ones, waits on the same future. The outcome (ready or
    degraded) is settled once and kept for the lifetime of the instance. When
    degraded, ``lemmatize`` returns the lowercased word.
    """

    def __init__(self, factory: Optional[Callable[[], Any]] = None, timeout: float = 10.0) -> None:
        self._factory = factory or load_morph_analyzer
        self._timeout = timeout
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._deadline = 0.0
        self._analyzer: Any = None
        self._state = UNINITIALIZED

    @property
    def state(self) -> str:
        return self._state

    def start(self) -> Future:
        """Kick off initialisation if nobody has yet and return the shared future."""
        with self._lock:
            if self._future is None:
                self._future = Future()
                self._state = INITIALIZING
                self._deadline = time.monotonic() + self._timeout
                thread = threading.Thread(
                    target=self._initialize,
                    args=(self._future,),
                    name="lemmatizer-init",
                    daemon=True,
                )
                thread.start()
            return self._future

    def ensure_ready(self) -> bool:
        future = self._future
        if future is not None and future.done():
            return future.result()

        future = self.start()
        if future.done():
            return future.result()

        remaining = max(0.0, self._deadline - time.monotonic())
        try:
            return future.result(timeout=remaining)
        except FutureTimeoutError:
            self._settle(future, None, ready=False)
            logger.warning("Lemmatizer initialisation timed out after %.1fs; using lowercase fallback", self._timeout)
            return future.result()

    def lemmatize(self, word: str) -> str:
        if not self.ensure_ready():
            return word.lower()

        try:
            parses = self._analyzer.parse(word)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Lemmatizer failed for %r: %s", word, exc)
            return word.lower()

        if parses:
            normal_form = getattr(parses[0], "normal_form", None)
            if normal_form:
                return normal_form.lower()
        return word.lower()

    def _initialize(self, future: Future) -> None:
        logger.info("Initialising morphological analyzer")
        try:
            analyzer = self._factory()
            parses = analyzer.parse(SELF_TEST_WORD)
            normal_form = getattr(parses[0], "normal_form", "") if parses else ""
        except Exception as exc:  # noqa: BLE001
            logger.warning("Lemmatizer initialisation failed: %s; using lowercase fallback", exc)
            self._settle(future, None, ready=False)
            return

        if not normal_form:
            logger.warning("Lemmatizer self-test failed for %r; using lowercase fallback", SELF_TEST_WORD)
            self._settle(future, None, ready=False)
            return

        logger.info("Lemmatizer self-test: %s -> %s", SELF_TEST_WORD, normal_form)
        self._settle(future, analyzer, ready=True)

    def _settle(self, future: Future, analyzer: Any, *, ready: bool) -> None:
        with self._lock:
            if future.done():
                return
            if ready:
                self._analyzer = analyzer
            self._state = READY if ready else DEGRADED
            future.set_result(ready)


@lru_cache(maxsize=1)
def get_lemmatizer() -> Lemmatizer:
    """Return the process-wide lemmatizer."""
    return Lemmatizer(timeout=get_settings().lemmatizer_init_timeout)

"""Render Status Tracker - polls (or receives pushes for) a render until it settles."""

import threading
from enum import Enum
from typing import Any, Callable, Optional

from videogen.core.config import Settings
from videogen.core.exceptions import PollingError, PollingTimeout, VideoGenerationError
from videogen.models.schemas import RenderJob, RenderStatus
from videogen.services.render_client import RenderServiceClient

StatusChangeCallback = Callable[[RenderStatus, RenderJob], None]
CompleteCallback = Callable[[bool, Optional[RenderJob]], None]
ErrorCallback = Callable[[VideoGenerationError], None]


class TrackerState(str, Enum):
    """Polling session state."""

    IDLE = "idle"
    POLLING = "polling"
    DONE = "done"
    ERROR = "error"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"


class RenderStatusTracker:
    """
    Tracks one render job to a terminal status.

    The first status fetch happens on the caller's thread inside start(); later
    ticks run sequentially on a single worker thread. Every state change and
    callback dispatch happens under one re-entrant lock, so once stop() returns
    no further callbacks fire. Callbacks must not call refresh().
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        client: RenderServiceClient,
        interval_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        on_status_change: Optional[StatusChangeCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        """
        Initialize the tracker.

        Args:
            settings: Application settings
            logger: Logger instance
            client: Render service client used for status fetches
            interval_seconds: Delay between ticks (defaults to settings)
            max_attempts: Tick cap before timing out (defaults to settings)
            on_status_change: Called with (status, job) on every forward transition
            on_complete: Called once with (success, job) when the session ends
            on_error: Called with PollingTimeout or PollingError
        """
        self.settings = settings
        self.logger = logger
        self.client = client
        self.interval_seconds = settings.poll_interval_seconds if interval_seconds is None else interval_seconds
        self.max_attempts = settings.poll_max_attempts if max_attempts is None else max_attempts
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.on_status_change = on_status_change
        self.on_complete = on_complete
        self.on_error = on_error

        self._lock = threading.RLock()
        self._fetch_lock = threading.Lock()
        self._wakeup = threading.Event()
        self._finished = threading.Event()
        self._finished.set()
        self._thread: Optional[threading.Thread] = None
        self._session = 0

        self._state = TrackerState.IDLE
        self._job_id: Optional[str] = None
        self._job: Optional[RenderJob] = None
        self._attempts = 0
        self._skip_next_fetch = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        with self._lock:
            return self._state

    @property
    def attempts(self) -> int:
        with self._lock:
            return self._attempts

    @property
    def job_id(self) -> Optional[str]:
        return self._job_id

    @property
    def job(self) -> Optional[RenderJob]:
        """Copy of the latest observed job."""
        with self._lock:
            return self._job.model_copy() if self._job else None

    @property
    def is_active(self) -> bool:
        return self.state == TrackerState.POLLING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, job_id: str, job: Optional[RenderJob] = None) -> None:
        """
        Begin tracking a render.

        Args:
            job_id: Render identifier
            job: Last known record for the render (e.g. the persisted queued job)

        Raises:
            RuntimeError: If a session is already polling
        """
        with self._lock:
            if self._state == TrackerState.POLLING:
                raise RuntimeError(f"Tracker is already polling render {self._job_id}")

            self._session += 1
            session = self._session
            self._job_id = job_id
            self._job = job.model_copy() if job else None
            self._attempts = 0
            self._skip_next_fetch = False
            self._wakeup = threading.Event()
            self._finished.clear()
            self._state = TrackerState.POLLING

        self.logger.info(
            f"Tracking render {job_id} (interval={self.interval_seconds}s, max_attempts={self.max_attempts})"
        )

        self._tick(session)

        with self._lock:
            if self._is_current(session):
                self._thread = threading.Thread(
                    target=self._run,
                    args=(session, self._wakeup),
                    name=f"render-tracker-{job_id}",
                    daemon=True,
                )
                self._thread.start()

    def stop(self) -> None:
        """Stop tracking. Safe to call in any state and more than once."""
        with self._lock:
            if self._state == TrackerState.POLLING:
                self._state = TrackerState.STOPPED
                self.logger.info(f"Stopped tracking render {self._job_id} after {self._attempts} attempt(s)")
            self._wakeup.set()
            self._finished.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the session finishes.

        Returns:
            True if the session finished, False on timeout
        """
        return self._finished.wait(timeout)

    def refresh(self) -> RenderJob:
        """
        Fetch the current status once, outside the polling cadence.

        The attempt counter is not touched. While polling, the observation is
        applied like a tick's would be.

        Raises:
            RuntimeError: If the tracker was never started
            PollingError: If the fetch fails
        """
        with self._lock:
            job_id = self._job_id
            session = self._session
        if job_id is None:
            raise RuntimeError("Tracker has not been started")

        with self._fetch_lock:
            observed = self.client.get_render(job_id)
            with self._lock:
                if self._is_current(session):
                    self._apply(observed)
                    return self._job.model_copy()
        return observed

    def push_update(self, job: RenderJob) -> bool:
        """
        Apply a pushed (webhook) observation.

        A terminal push completes the session. A non-terminal push makes the next
        tick skip its fetch; that tick still counts toward the attempt cap.

        Returns:
            True if the observation was applied
        """
        with self._lock:
            if self._state != TrackerState.POLLING or job.id != self._job_id:
                self.logger.debug(f"Ignoring pushed update for render {job.id} (state={self._state.value})")
                return False

            self._apply(job)
            if self._state == TrackerState.POLLING:
                self._skip_next_fetch = True
            return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_current(self, session: int) -> bool:
        return self._session == session and self._state == TrackerState.POLLING

    def _run(self, session: int, wakeup: threading.Event) -> None:
        while True:
            wakeup.wait(self.interval_seconds)
            with self._lock:
                if not self._is_current(session):
                    return
            self._tick(session)

    def _tick(self, session: int) -> None:
        with self._fetch_lock:
            with self._lock:
                if not self._is_current(session):
                    return
                job_id = self._job_id
                skip_fetch = self._skip_next_fetch
                self._skip_next_fetch = False

            observed = None
            error = None
            if not skip_fetch:
                try:
                    observed = self.client.get_render(job_id)
                except PollingError as e:
                    error = e
                except Exception as e:
                    error = PollingError(
                        f"Unexpected error fetching render {job_id}: {e}", context={"render_id": job_id}
                    )

            with self._lock:
                if not self._is_current(session):
                    return

                self._attempts += 1
                self.logger.debug(f"Render {job_id} tick {self._attempts}/{self.max_attempts}")

                if error is not None:
                    self.logger.error(f"Status fetch failed for render {job_id}: {error}")
                    self._finish(TrackerState.ERROR, success=False, error=error)
                    return

                if observed is not None:
                    self._apply(observed)

                if self._state == TrackerState.POLLING and self._attempts >= self.max_attempts:
                    self.logger.warning(f"Render {job_id} timed out after {self._attempts} attempt(s)")
                    timeout = PollingTimeout(
                        f"Render {job_id} did not finish after {self._attempts} status checks",
                        context={"render_id": job_id, "attempts": self._attempts},
                    )
                    self._finish(TrackerState.TIMED_OUT, success=False, error=timeout)

    def _apply(self, observed: RenderJob) -> None:
        """Merge an observation; only forward transitions are reported. Caller holds the lock."""
        if self._job is None:
            self._job = observed.model_copy()
            changed = True
        elif not self._job.can_transition_to(observed.status):
            self.logger.debug(
                f"Ignoring backward transition {self._job.status.value} -> {observed.status.value} "
                f"for render {self._job_id}"
            )
            return
        else:
            changed = self._job.advance(observed)

        if changed:
            self.logger.info(f"Render {self._job_id} status: {self._job.status.value}")
            self._dispatch(self.on_status_change, self._job.status, self._job.model_copy())

        if self._job.is_terminal:
            success = self._job.status == RenderStatus.DONE
            self._finish(TrackerState.DONE if success else TrackerState.ERROR, success=success)

    def _finish(self, state: TrackerState, success: bool, error: Optional[VideoGenerationError] = None) -> None:
        """End the session and fire completion callbacks. Caller holds the lock."""
        self._state = state
        self._wakeup.set()
        if error is not None:
            self._dispatch(self.on_error, error)
        self._dispatch(self.on_complete, success, self._job.model_copy() if self._job else None)
        self._finished.set()

    def _dispatch(self, callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            self.logger.exception(f"Tracker callback {getattr(callback, '__name__', callback)!r} failed: {e}")


class TrackerRegistry:
    """One tracker per render id, shared by every observer of that render."""

    def __init__(self, logger: Any):
        self.logger = logger
        self._trackers: dict[str, RenderStatusTracker] = {}
        self._lock = threading.Lock()

    def get(self, render_id: str) -> Optional[RenderStatusTracker]:
        with self._lock:
            return self._trackers.get(render_id)

    def get_or_create(self, render_id: str, factory: Callable[[], RenderStatusTracker]) -> RenderStatusTracker:
        """Return the registered tracker for a render, creating it with factory if needed."""
        with self._lock:
            tracker = self._trackers.get(render_id)
            if tracker is None:
                tracker = factory()
                self._trackers[render_id] = tracker
            return tracker

    def register(self, render_id: str, tracker: RenderStatusTracker) -> None:
        """
        Register a tracker for a render.

        Raises:
            ValueError: If another active tracker already owns the render
        """
        with self._lock:
            existing = self._trackers.get(render_id)
            if existing is not None and existing is not tracker and existing.is_active:
                raise ValueError(f"Render {render_id} is already tracked")
            self._trackers[render_id] = tracker

    def remove(self, render_id: str) -> Optional[RenderStatusTracker]:
        with self._lock:
            return self._trackers.pop(render_id, None)

    def dispatch(self, job: RenderJob) -> bool:
        """
        Forward a pushed observation to the render's tracker.

        Returns:
            True if an active tracker accepted it
        """
        tracker = self.get(job.id)
        if tracker is None:
            return False
        return tracker.push_update(job)

    def stop_all(self) -> None:
        with self._lock:
            trackers = list(self._trackers.values())
            self._trackers.clear()
        for tracker in trackers:
            tracker.stop()
        if trackers:
            self.logger.info(f"Stopped {len(trackers)} render tracker(s)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)

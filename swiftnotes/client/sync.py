"""
Client-side reconciliation between displayed preference values and the server.

The controller is driven from a single event loop: edits, saves and fetch
results arrive as ordered events. Server data only ever reaches the
displayed values through three doors:

* the first successful fetch (``UNINITIALIZED -> SYNCED``),
* a save response when nothing was edited while it was in flight,
* an explicit ``discard()``.

A background refetch while there are unsaved or in-flight edits changes
nothing the user can see.
"""
import asyncio
import enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from swiftnotes.client.cache import PreferenceCache
from swiftnotes.client.errors import PreferenceSyncError, RetryableSyncError
from swiftnotes.logging_config import get_logger

logger = get_logger(__name__)


class SyncState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    SYNCED = "synced"
    LOCALLY_MODIFIED = "locally_modified"
    SAVING = "saving"


ChangeListener = Callable[[Dict[str, Any]], None]
ErrorListener = Callable[[PreferenceSyncError], None]


class SyncController:
    def __init__(self, api, cache: Optional[PreferenceCache] = None):
        self.api = api
        self.cache = cache or PreferenceCache()
        self.state = SyncState.UNINITIALIZED
        self.last_error: Optional[PreferenceSyncError] = None

        # Every edit bumps this; a save remembers the value it started at
        self._edit_seq = 0
        self._discard_seq: Optional[int] = None
        # Latest save issued / latest save whose result was recorded
        self._save_seq = 0
        self._confirmed_save_seq = 0
        self._saves_in_flight = 0
        # Keys edited since the display was last in sync with the server
        self._touched: Set[str] = set()

        self._change_listeners: List[ChangeListener] = []
        self._error_listeners: List[ErrorListener] = []

    # -- listeners -----------------------------------------------------

    def on_change(self, callback: ChangeListener) -> None:
        self._change_listeners.append(callback)

    def on_error(self, callback: ErrorListener) -> None:
        self._error_listeners.append(callback)

    def _notify_change(self) -> None:
        snapshot = self.cache.snapshot()
        for callback in self._change_listeners:
            callback(snapshot)

    def _notify_error(self, error: PreferenceSyncError) -> None:
        self.last_error = error
        for callback in self._error_listeners:
            callback(error)

    # -- read side -----------------------------------------------------

    @property
    def displayed(self) -> Dict[str, Any]:
        return self.cache.snapshot()

    def get(self, key: str, default: Any = None) -> Any:
        return self.cache.get(key, default)

    @property
    def has_unsaved_changes(self) -> bool:
        return self.state in (SyncState.LOCALLY_MODIFIED, SyncState.SAVING)

    async def load(self) -> Dict[str, Any]:
        """
        Initial fetch after login / mount.

        On failure the controls show the built-in defaults and the state
        stays UNINITIALIZED so a later refresh can still initialize.
        """
        if self.state is not SyncState.UNINITIALIZED:
            return self.displayed

        try:
            profile = await self.api.fetch_profile()
        except PreferenceSyncError as e:
            logger.warning(f"Initial preference load failed, showing defaults: {e.message}")
            if self.state is SyncState.UNINITIALIZED:
                self.cache.show_defaults()
                self._notify_change()
            self._notify_error(e)
            return self.displayed

        self.receive_server_document(profile.get("preferences") or {})
        return self.displayed

    async def refresh(self) -> None:
        """Background refetch, e.g. on navigation. Never clobbers local edits."""
        try:
            document = await self.api.fetch_preferences()
        except PreferenceSyncError as e:
            logger.info(f"Background preference refresh failed: {e.message}")
            return
        self.receive_server_document(document)

    def receive_server_document(self, document: Mapping[str, Any]) -> None:
        """Apply a freshly fetched server document according to the current state."""
        if self.state is SyncState.UNINITIALIZED:
            self.cache.confirm(document)
            self.cache.adopt_confirmed()
            self.state = SyncState.SYNCED
            logger.debug("Preferences initialized from server")
            self._notify_change()
            return

        if self.state is SyncState.SYNCED:
            self.cache.confirm(document)
            self.cache.adopt_confirmed()
            self._notify_change()
            return

        # Local edits exist; the fetch may only fill in a missing baseline
        if self.cache.last_confirmed is None:
            self.cache.confirm(document)
        logger.debug(f"Ignoring server document while {self.state.value}")

    # -- write side ----------------------------------------------------

    def edit(self, changes: Optional[Mapping[str, Any]] = None, **values: Any) -> None:
        """Record a user edit from any control (slider, toggle, select)."""
        updates = dict(changes or {})
        updates.update(values)
        if not updates:
            return

        for key, value in updates.items():
            self.cache.set(key, value)
            self._touched.add(key)
        self._edit_seq += 1
        self.state = SyncState.LOCALLY_MODIFIED
        self._notify_change()

    def pending_patch(self) -> Dict[str, Any]:
        return {key: self.cache.get(key) for key in sorted(self._touched)}

    async def save(self) -> bool:
        """
        Send the edits as they are right now.

        Returns True when the server accepted them. Failures keep every local
        edit and are reported through ``last_error`` and the error listeners.
        """
        if self.state is SyncState.SYNCED or not self._touched:
            return True

        patch = self.pending_patch()
        self._save_seq += 1
        seq = self._save_seq
        edit_seq_at_save = self._edit_seq
        self._saves_in_flight += 1
        self.state = SyncState.SAVING
        self.last_error = None

        try:
            document = await self.api.update_preferences(patch)
        except PreferenceSyncError as e:
            self._save_failed(seq, e)
            return False
        except asyncio.CancelledError:
            # caller timeout or task cancelled; edits stay local for a retry
            self._save_failed(seq, RetryableSyncError("Request cancelled"))
            raise
        except Exception as e:
            self._save_failed(seq, PreferenceSyncError(f"Unexpected error while saving: {e}"))
            raise
        finally:
            self._saves_in_flight -= 1

        self._save_succeeded(seq, edit_seq_at_save, document)
        return True

    def _save_succeeded(self, seq: int, edit_seq_at_save: int, document: Mapping[str, Any]) -> None:
        # An older save finishing late must not replace a newer confirmation
        if seq > self._confirmed_save_seq:
            self.cache.confirm(document)
            self._confirmed_save_seq = seq

        if seq != self._save_seq:
            return

        untouched_since_save = self._edit_seq == edit_seq_at_save
        discarded_since_save = self._discard_seq is not None and self._edit_seq == self._discard_seq
        if untouched_since_save or discarded_since_save:
            self.cache.adopt_confirmed()
            self._touched.clear()
            self.state = SyncState.SYNCED
            logger.info("Preferences saved")
            self._notify_change()
        else:
            self.state = SyncState.LOCALLY_MODIFIED
            logger.info("Preferences saved; newer local edits kept")

    def _save_failed(self, seq: int, error: PreferenceSyncError) -> None:
        logger.warning(f"Saving preferences failed (retryable={error.retryable}): {error.message}")
        if seq == self._save_seq and self.state is SyncState.SAVING:
            if self._touched:
                self.state = SyncState.LOCALLY_MODIFIED
            elif self.cache.last_confirmed is not None:
                # edits were discarded while the request was out
                self.state = SyncState.SYNCED
            else:
                self.state = SyncState.UNINITIALIZED
        self._notify_error(error)

    def discard(self) -> None:
        """Explicit user reset: throw away local edits, show confirmed values."""
        self.cache.adopt_confirmed()
        self._touched.clear()
        self._edit_seq += 1
        self._discard_seq = self._edit_seq

        if self._saves_in_flight:
            # the in-flight response will be adopted when it lands
            self.state = SyncState.SAVING
        elif self.cache.last_confirmed is None:
            self.state = SyncState.UNINITIALIZED
        else:
            self.state = SyncState.SYNCED
        self._notify_change()

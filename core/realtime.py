# core/realtime.py

"""
Real-time snapshot subscriptions over the document store.

A subscription receives the full result set of its query immediately and
again after every committed write to its collection. Consumers re-derive
their state from each snapshot; nothing is diffed.

No ordering is guaranteed across independent subscriptions. DerivedView
waits until every source has delivered once, then recomputes on any
delivery.
"""

import queue
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.logging_config import logger
from core.store import DocumentStore, Query


Snapshot = List[dict]


class Subscription:
    """Handle returned by SubscriptionHub.subscribe. Owner must unsubscribe."""

    def __init__(
        self,
        hub: "SubscriptionHub",
        collection: str,
        query: Optional[Query],
        callback: Callable[[Snapshot], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.hub = hub
        self.collection = collection
        self.query = query
        self.callback = callback
        self.on_error = on_error
        self.active = True
        self.deliveries = 0

    def deliver(self):
        if not self.active:
            return
        try:
            snapshot = self.hub.store.query(self.collection, self.query)
            self.deliveries += 1
            self.callback(snapshot)
        except Exception as e:
            if self.on_error:
                self.on_error(e)
            else:
                logger.error(f"Snapshot delivery failed for {self.collection}: {e}", exc_info=True)

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self.hub._remove(self)


class SubscriptionHub:
    """
    Registry of live subscriptions, fed by the store's change listener.
    Constructed once per application context.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self._subs: Dict[str, List[Subscription]] = {}
        self._lock = Lock()
        store.add_change_listener(self._on_change)

    def subscribe(
        self,
        collection: str,
        query: Optional[Query] = None,
        callback: Optional[Callable[[Snapshot], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        sub = Subscription(self, collection, query, callback or (lambda _: None), on_error)
        with self._lock:
            self._subs.setdefault(collection, []).append(sub)
        sub.deliver()
        return sub

    def _remove(self, sub: Subscription):
        with self._lock:
            subs = self._subs.get(sub.collection, [])
            if sub in subs:
                subs.remove(sub)

    def _on_change(self, collection: str):
        with self._lock:
            subs = list(self._subs.get(collection, []))
        for sub in subs:
            sub.deliver()

    def active_count(self, collection: Optional[str] = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._subs.get(collection, []))
            return sum(len(s) for s in self._subs.values())

    def close(self):
        with self._lock:
            subs = [s for group in self._subs.values() for s in group]
        for sub in subs:
            sub.unsubscribe()
        self.store.remove_change_listener(self._on_change)


_CLOSED = object()


class SnapshotChannel:
    """
    Long-lived channel yielding full-snapshot events for one subscription.

    Only the newest snapshot is kept: a reader that falls behind skips
    straight to the current state instead of replaying stale ones.

    Usage:
        with SnapshotChannel(hub, "tasks") as channel:
            for snapshot in channel:
                ...
    """

    def __init__(
        self,
        hub: SubscriptionHub,
        collection: str,
        query: Optional[Query] = None,
        maxsize: int = 1,
    ):
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._put_lock = Lock()
        self._closed = False
        self.dropped = 0
        self._subscription = hub.subscribe(
            collection, query, callback=self._offer, on_error=self._on_error,
        )

    def _offer(self, item: Any):
        with self._put_lock:
            if self._closed and item is not _CLOSED:
                return
            while True:
                try:
                    self._queue.put_nowait(item)
                    return
                except queue.Full:
                    pass
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass

    def _on_error(self, error: Exception):
        logger.warning(f"Snapshot channel error: {error}")

    def get(self, timeout: Optional[float] = None) -> Optional[Snapshot]:
        """Next snapshot, or None once closed. Raises queue.Empty on timeout."""
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker for any other reader
            self._offer(_CLOSED)
            return None
        return item

    def __iter__(self):
        while True:
            snapshot = self.get()
            if snapshot is None:
                return
            yield snapshot

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._subscription.unsubscribe()
        self._offer(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class DerivedView:
    """
    Client-side join over several subscriptions.

    `sources` maps a name to (collection, query). `compute` is called with
    one keyword argument per source once all have delivered, and again on
    every later delivery from any source.
    """

    def __init__(
        self,
        hub: SubscriptionHub,
        sources: Dict[str, Tuple[str, Optional[Query]]],
        compute: Callable[..., Any],
        on_result: Optional[Callable[[Any], None]] = None,
    ):
        self._compute = compute
        self._on_result = on_result
        self._snapshots: Dict[str, Snapshot] = {}
        self._names = list(sources)
        self._lock = Lock()
        self.value: Any = None
        self.computations = 0
        self._subs: List[Subscription] = []

        for name, (collection, query) in sources.items():
            self._subs.append(
                hub.subscribe(collection, query, callback=self._receiver(name))
            )

    def _receiver(self, name: str) -> Callable[[Snapshot], None]:
        def receive(snapshot: Snapshot):
            with self._lock:
                self._snapshots[name] = snapshot
                if not self.ready:
                    return
                self.value = self._compute(**{n: self._snapshots[n] for n in self._names})
                self.computations += 1
                result = self.value
            if self._on_result:
                self._on_result(result)
        return receive

    @property
    def ready(self) -> bool:
        return all(name in self._snapshots for name in self._names)

    def close(self):
        for sub in self._subs:
            sub.unsubscribe()

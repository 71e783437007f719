"""
Per-buffer bookkeeping that guarantees at-most-once emission.

Every parse call rebuilds the candidate list from the whole snapshot, so
the same invocation shows up again and again as the buffer grows. The
Ledger remembers which identities were already handed to the consumer
and filters them out.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from .events import COMPLETE, InvocationCandidate, Lifecycle, ParsedInvocation

LOGGER = logging.getLogger(__name__)


@dataclass
class LedgerEntry:
    """Emission state for one identity.

    Attributes:
        identity: The identity this entry tracks.
        last_seen_lifecycle: Lifecycle from the most recent snapshot.
        emitted: True once the invocation was handed to the consumer.
            Never reset to False.
        first_seen: When the identity was first observed.
        last_seen: When the identity was last observed.
    """
    identity: str
    last_seen_lifecycle: Lifecycle
    emitted: bool = False
    first_seen: datetime = field(default_factory=datetime.now)
    last_seen: datetime = field(default_factory=datetime.now)


class Ledger:
    """Identity to emission-state store for one logical buffer.

    reconcile() is safe to call from several threads for the same
    buffer: the check-and-set of LedgerEntry.emitted happens under a
    lock, so each identity is emitted at most once.

    Example:
        ledger = Ledger("msg-1")
        for invocation in ledger.reconcile(candidates):
            execute(invocation)
    """

    def __init__(self, buffer_id: str = ""):
        """Initialize an empty ledger.

        Args:
            buffer_id: The buffer this ledger belongs to (for logging).
        """
        self.buffer_id = buffer_id
        self._entries: dict[str, LedgerEntry] = {}
        self._streaming: list[InvocationCandidate] = []
        self._lock = threading.Lock()

    def reconcile(self, candidates: list[InvocationCandidate]) -> list[ParsedInvocation]:
        """Record a freshly computed candidate list and return new completions.

        Args:
            candidates: Every candidate found in the current snapshot,
                in document order.

        Returns:
            ParsedInvocation objects for candidates that are complete
            and were never emitted before, in document order.
        """
        completed, _ = self.update(candidates)
        return completed

    def update(
        self, candidates: list[InvocationCandidate]
    ) -> tuple[list[ParsedInvocation], list[InvocationCandidate]]:
        """Like reconcile(), but also return the streaming candidates.

        Both lists come from the same locked pass, so they always describe
        the same snapshot even when several threads share the buffer.

        Returns:
            Tuple of (completed, streaming).
        """
        completed: list[ParsedInvocation] = []
        streaming: list[InvocationCandidate] = []

        with self._lock:
            for candidate in candidates:
                entry = self._entries.get(candidate.identity)
                if entry is None:
                    entry = LedgerEntry(
                        identity=candidate.identity,
                        last_seen_lifecycle=candidate.lifecycle,
                    )
                    self._entries[candidate.identity] = entry
                else:
                    entry.last_seen = datetime.now()

                if entry.emitted:
                    LOGGER.debug("Skipping already emitted invocation %r", candidate.identity)
                    continue

                entry.last_seen_lifecycle = candidate.lifecycle
                if candidate.lifecycle == COMPLETE:
                    entry.emitted = True
                    completed.append(ParsedInvocation.from_candidate(candidate))
                    LOGGER.debug(
                        "Emitting %s invocation %r (%s) from buffer %r",
                        candidate.syntax,
                        candidate.identity,
                        candidate.tool_name,
                        self.buffer_id,
                    )
                else:
                    streaming.append(candidate)

            self._streaming = streaming

        return completed, list(streaming)

    def streaming(self) -> list[InvocationCandidate]:
        """Candidates that were still streaming in the last reconcile() call."""
        with self._lock:
            return list(self._streaming)

    def get(self, identity: str) -> LedgerEntry | None:
        """Look up the entry for an identity."""
        with self._lock:
            return self._entries.get(identity)

    def is_emitted(self, identity: str) -> bool:
        """Check if an identity has already crossed the emit boundary."""
        entry = self.get(identity)
        return entry is not None and entry.emitted

    def reset(self) -> None:
        """Forget every identity (e.g. for a new conversation)."""
        with self._lock:
            self._entries.clear()
            self._streaming = []
        LOGGER.debug("Reset ledger for buffer %r", self.buffer_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._entries

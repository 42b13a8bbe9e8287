"""In-memory per-user state for News Digest Bot."""

import threading

from .logging_config import create_execution_logger

UserId = int | str


class PreferenceStore:
    """Committed topic lists, keyed by user.

    Records live for the lifetime of the process and are only ever
    overwritten wholesale.
    """

    def __init__(self):
        self._preferences: dict[UserId, list[str]] = {}
        self._lock = threading.Lock()

    def get(self, user_id: UserId) -> list[str] | None:
        with self._lock:
            topics = self._preferences.get(user_id)
            return list(topics) if topics is not None else None

    def set(self, user_id: UserId, topics: list[str]) -> None:
        with self._lock:
            self._preferences[user_id] = list(topics)

    def user_ids(self) -> list[UserId]:
        """Snapshot of every user with a committed preference record."""
        with self._lock:
            return list(self._preferences)

    def __contains__(self, user_id: UserId) -> bool:
        with self._lock:
            return user_id in self._preferences

    def __len__(self) -> int:
        with self._lock:
            return len(self._preferences)


class SelectionSession:
    """In-progress topic selections that have not been committed yet."""

    def __init__(self, preferences: PreferenceStore, execution_id: str | None = None):
        """Initialize the session map.

        Args:
            preferences: Store that receives the topics on commit
            execution_id: Execution ID for logging context
        """
        self.preferences = preferences
        self.logger = create_execution_logger("selection_session", execution_id)
        self._sessions: dict[UserId, set[str]] = {}
        self._lock = threading.Lock()

    def open(self, user_id: UserId, seed_topics: list[str] | None = None) -> set[str]:
        """Create or replace the session for a user.

        Returns:
            Copy of the seeded selection
        """
        selected = set(seed_topics or [])
        with self._lock:
            self._sessions[user_id] = selected
            self.logger.debug(
                "Selection session opened", user_id=user_id, topics=sorted(selected)
            )
            return set(selected)

    def get(self, user_id: UserId) -> set[str] | None:
        with self._lock:
            selected = self._sessions.get(user_id)
            return set(selected) if selected is not None else None

    def toggle(self, user_id: UserId, topic: str) -> set[str]:
        """Flip a topic in the user's selection, creating an empty one if needed.

        Returns:
            Copy of the selection after the flip
        """
        with self._lock:
            selected = self._sessions.setdefault(user_id, set())
            if topic in selected:
                selected.remove(topic)
            else:
                selected.add(topic)
            return set(selected)

    def commit(self, user_id: UserId, order: tuple[str, ...] = ()) -> list[str] | None:
        """Write the selection to the preference store and close the session.

        Topics are ordered by their position in ``order`` (unknown topics
        last, alphabetically) so the same selection always commits the same
        list.

        Returns:
            The committed topics, or None if the session is absent or empty.
            A rejected commit leaves the session untouched.
        """
        with self._lock:
            selected = self._sessions.get(user_id)
            if not selected:
                self.logger.info("Rejected empty commit", user_id=user_id)
                return None

            rank = {topic: index for index, topic in enumerate(order)}
            topics = sorted(selected, key=lambda t: (rank.get(t, len(rank)), t))
            self.preferences.set(user_id, topics)
            del self._sessions[user_id]

        self.logger.info("Preferences committed", user_id=user_id, topics=topics)
        return topics

    def __contains__(self, user_id: UserId) -> bool:
        with self._lock:
            return user_id in self._sessions

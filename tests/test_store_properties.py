"""Property-based tests for selection sessions."""

from hypothesis import given
from hypothesis import strategies as st

from news_digest_bot.models import AVAILABLE_TOPICS
from news_digest_bot.store import PreferenceStore, SelectionSession

topic_sets = st.sets(st.sampled_from(AVAILABLE_TOPICS))
user_ids = st.one_of(st.integers(), st.text(min_size=1, max_size=20))


class TestSelectionSessionProperties:
    """Property-based tests for SelectionSession."""

    @given(user_ids, topic_sets, st.sampled_from(AVAILABLE_TOPICS))
    def test_toggle_is_self_inverse_property(self, user_id, seed, topic):
        """Toggling the same topic twice restores the previous selection."""
        sessions = SelectionSession(PreferenceStore())
        before = sessions.open(user_id, sorted(seed))

        sessions.toggle(user_id, topic)
        after = sessions.toggle(user_id, topic)

        assert after == before

    @given(user_ids, topic_sets)
    def test_commit_round_trips_selection_property(self, user_id, seed):
        """A non-empty commit stores exactly the selected topics once each."""
        preferences = PreferenceStore()
        sessions = SelectionSession(preferences)
        sessions.open(user_id, sorted(seed))

        result = sessions.commit(user_id, AVAILABLE_TOPICS)

        if not seed:
            assert result is None
            assert preferences.get(user_id) is None
            assert user_id in sessions
        else:
            assert set(result) == seed
            assert len(result) == len(seed)
            assert preferences.get(user_id) == result
            assert user_id not in sessions

    @given(st.lists(st.sampled_from(AVAILABLE_TOPICS), max_size=30))
    def test_toggle_sequence_parity_property(self, toggles):
        """A topic is selected iff it was toggled an odd number of times."""
        sessions = SelectionSession(PreferenceStore())
        sessions.open(1)

        selected = set()
        for topic in toggles:
            selected = sessions.toggle(1, topic)

        expected = {t for t in AVAILABLE_TOPICS if toggles.count(t) % 2 == 1}
        assert selected == expected

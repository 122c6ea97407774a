"""
Tests for Note Categorizer
Triggered vs suggested grouping, tie-breaks and idempotence
"""

import unittest
from datetime import datetime

from milestone_tracker.categorizer import NoteCategorizer, categorize
from milestone_tracker.models import Milestone, Note


class TestNoteCategorizer(unittest.TestCase):
    def setUp(self):
        self.categorizer = NoteCategorizer()

    def test_no_milestones_leaves_note_uncategorized(self):
        note = Note(text="played for a while")

        result = categorize([note], [])

        self.assertEqual(result.categorized, [])
        self.assertEqual([n.id for n in result.uncategorized], [note.id])

    def test_most_recent_homonym_is_the_trigger(self):
        """Text-only links resolve to the latest note with that text"""
        older = Note(id="jan1", text="Beat the final boss", date=datetime(2024, 1, 1))
        newer = Note(id="jan5", text="Beat the final boss", date=datetime(2024, 1, 5))
        milestone = Milestone(
            id="m1",
            title="Final Boss",
            completed=True,
            completed_date=datetime(2024, 1, 5),
            triggered_by_note="Beat the final boss",
        )

        result = categorize([older, newer], [milestone])

        triggered = [c for c in result.categorized if c.is_triggered]
        self.assertEqual(len(triggered), 1)
        self.assertEqual(triggered[0].note.id, "jan5")
        self.assertEqual(triggered[0].primary_milestone.id, "m1")
        # nothing incomplete left to suggest for the older note
        self.assertEqual([n.id for n in result.uncategorized], ["jan1"])

    def test_note_id_link_wins_over_text(self):
        older = Note(id="first", text="Beat the final boss", date=datetime(2024, 1, 1))
        newer = Note(id="second", text="Beat the final boss", date=datetime(2024, 1, 5))
        milestone = Milestone(
            id="m1",
            title="Final Boss",
            completed=True,
            completed_date=datetime(2024, 1, 1),
            triggered_by_note="Beat the final boss",
            triggered_by_note_id="first",
        )

        result = categorize([older, newer], [milestone])

        triggered = [c for c in result.categorized if c.is_triggered]
        self.assertEqual([c.note.id for c in triggered], ["first"])

    def test_all_triggered_milestones_are_related(self):
        note = Note(id="n1", text="cleared the whole castle")
        milestones = [
            Milestone(id="a", title="Castle Gate", completed=True, triggered_by_note_id="n1"),
            Milestone(id="b", title="Castle Keep", completed=True, triggered_by_note_id="n1"),
        ]

        result = categorize([note], milestones)

        entry = result.categorized[0]
        self.assertTrue(entry.is_triggered)
        self.assertEqual([m.id for m in entry.related_milestones], ["a", "b"])
        self.assertEqual(entry.primary_milestone.id, "a")

    def test_suggestions_use_incomplete_milestones_only(self):
        note = Note(text="defeated the dragon")
        milestones = [
            Milestone(id="done", title="Dragon Slayer", completed=True),
            Milestone(id="open", title="Defeat the Dragon"),
        ]

        result = categorize([note], milestones)

        entry = result.categorized[0]
        self.assertFalse(entry.is_triggered)
        self.assertEqual([m.id for m in entry.related_milestones], ["open"])

    def test_suggestions_keep_top_three(self):
        note = Note(text="dragon")
        milestones = [Milestone(id=str(i), title="Dragon") for i in range(6)]

        result = categorize([note], milestones)

        self.assertEqual(len(result.categorized[0].related_milestones), 3)

    def test_sorted_newest_first(self):
        notes = [
            Note(id="a", text="dragon", date=datetime(2024, 1, 1)),
            Note(id="b", text="dragon", date=datetime(2024, 3, 1)),
            Note(id="c", text="zzzz", date=datetime(2024, 2, 1)),
            Note(id="d", text="qqqq", date=datetime(2024, 4, 1)),
        ]
        milestones = [Milestone(id="m", title="Dragon")]

        result = categorize(notes, milestones)

        self.assertEqual([c.note.id for c in result.categorized], ["b", "a"])
        self.assertEqual([n.id for n in result.uncategorized], ["d", "c"])

    def test_duplicate_note_ids_processed_once(self):
        note = Note(id="same", text="zzzz")

        result = categorize([note, note], [])

        self.assertEqual(len(result.uncategorized), 1)

    def test_idempotent_and_pure(self):
        notes = [
            Note(id="a", text="Beat the final boss", date=datetime(2024, 1, 5)),
            Note(id="b", text="found the dragon cave", date=datetime(2024, 1, 6)),
        ]
        milestones = [
            Milestone(id="m1", title="Final Boss", completed=True, triggered_by_note="Beat the final boss"),
            Milestone(id="m2", title="Dragon Cave", category="exploration"),
        ]
        before = [m.model_dump() for m in milestones]

        first = self.categorizer.categorize(notes, milestones)
        second = self.categorizer.categorize(notes, milestones)

        self.assertEqual(first.model_dump(), second.model_dump())
        self.assertEqual([m.model_dump() for m in milestones], before)

    def test_malformed_collections_degrade(self):
        result = categorize(None, None)

        self.assertEqual(result.categorized, [])
        self.assertEqual(result.uncategorized, [])

        note = Note(text="dragon")
        result = categorize([note, None], "not a list")
        self.assertEqual([n.id for n in result.uncategorized], [note.id])


if __name__ == "__main__":
    unittest.main(verbosity=2)

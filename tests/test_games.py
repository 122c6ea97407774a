"""
Tests for direct game edits
Deleting a triggering note must never leave an orphaned completion
"""

import unittest
from datetime import datetime

from milestone_tracker.categorizer import categorize
from milestone_tracker.games import (
    add_milestone,
    delete_milestone,
    delete_note,
    new_game,
    replace_milestones,
    set_status,
    toggle_milestone,
)
from milestone_tracker.matcher_config import GameStatus
from milestone_tracker.models import Game, Milestone, Note
from milestone_tracker.workflow import ConfirmationWorkflow


class TestDeleteNote(unittest.TestCase):
    def test_deleting_trigger_note_reverts_milestone(self):
        game = Game(
            title="Dragon Quest",
            milestones=[Milestone(id="x", title="Dragon Cave"), Milestone(id="y", title="Zzzz")],
        )
        workflow = ConfirmationWorkflow(game)
        workflow.submit_note("dragon")
        workflow.decide_all(True)
        self.assertEqual(game.progress, 50)

        delete_note(game, game.notes[0].id)

        reverted = game.milestones[0]
        self.assertFalse(reverted.completed)
        self.assertIsNone(reverted.completed_date)
        self.assertIsNone(reverted.triggered_by_note)
        self.assertIsNone(reverted.triggered_by_note_id)
        self.assertEqual(game.notes, [])
        self.assertEqual(game.progress, 0)

    def test_legacy_text_link_reverts(self):
        note = Note(text="Beat the final boss")
        game = Game(
            title="Legacy",
            notes=[note],
            milestones=[
                Milestone(
                    id="boss",
                    title="Final Boss",
                    completed=True,
                    completed_date=datetime(2024, 1, 5),
                    triggered_by_note="Beat the final boss",
                ),
                Milestone(id="manual", title="Side Quest", completed=True, completed_date=datetime(2024, 1, 1)),
            ],
            progress=100,
        )

        delete_note(game, note.id)

        self.assertFalse(game.milestones[0].completed)
        self.assertTrue(game.milestones[1].completed)
        self.assertEqual(game.progress, 50)

    def test_note_after_cancel_owns_the_agreed_milestone(self):
        game = Game(
            title="Dragon Quest",
            milestones=[
                Milestone(id="cave", title="Dragon Cave"),
                Milestone(id="tower", title="Dragon Tower"),
            ],
        )
        workflow = ConfirmationWorkflow(game)
        workflow.submit_note("dragon")
        workflow.decide("cave", True)
        workflow.cancel()
        workflow.submit_note("dragon")
        workflow.decide("tower", False)

        note_id = game.notes[0].id
        triggered = [e for e in categorize(game.notes, game.milestones).categorized if e.is_triggered]
        self.assertEqual([(e.note.id, e.primary_milestone.id) for e in triggered], [(note_id, "cave")])

        delete_note(game, note_id)

        cave = game.milestones[0]
        self.assertFalse(cave.completed)
        self.assertIsNone(cave.triggered_by_note)
        self.assertEqual(game.progress, 0)

    def test_stale_id_link_falls_back_to_text(self):
        note = Note(text="dragon")
        game = Game(
            title="Dragon Quest",
            notes=[note],
            milestones=[
                Milestone(
                    id="cave",
                    title="Dragon Cave",
                    completed=True,
                    completed_date=datetime(2024, 1, 5),
                    triggered_by_note="dragon",
                    triggered_by_note_id="never-stored",
                )
            ],
            progress=100,
        )

        delete_note(game, note.id)

        self.assertFalse(game.milestones[0].completed)
        self.assertEqual(game.progress, 0)

    def test_only_the_resolved_homonym_reverts(self):
        older = Note(id="old", text="Beat the final boss", date=datetime(2024, 1, 1))
        newer = Note(id="new", text="Beat the final boss", date=datetime(2024, 1, 5))
        game = Game(
            title="Legacy",
            notes=[older, newer],
            milestones=[
                Milestone(
                    id="boss",
                    title="Final Boss",
                    completed=True,
                    completed_date=datetime(2024, 1, 5),
                    triggered_by_note="Beat the final boss",
                )
            ],
            progress=100,
        )

        delete_note(game, "old")
        self.assertTrue(game.milestones[0].completed)

        delete_note(game, "new")
        self.assertFalse(game.milestones[0].completed)

    def test_unknown_note_is_noop(self):
        note = Note(text="kept")
        game = Game(title="G", notes=[note])

        delete_note(game, "missing")

        self.assertEqual(game.notes, [note])


class TestMilestoneEdits(unittest.TestCase):
    def setUp(self):
        self.game = Game(
            title="G",
            milestones=[Milestone(id="a", title="A"), Milestone(id="b", title="B")],
        )

    def test_toggle_on_and_off(self):
        toggle_milestone(self.game, "a")
        first = self.game.milestones[0]
        self.assertTrue(first.completed)
        self.assertIsNotNone(first.completed_date)
        self.assertIsNone(first.triggered_by_note)
        self.assertEqual(self.game.progress, 50)

        toggle_milestone(self.game, "a")
        first = self.game.milestones[0]
        self.assertFalse(first.completed)
        self.assertIsNone(first.completed_date)
        self.assertEqual(self.game.progress, 0)

    def test_add_custom_milestone(self):
        toggle_milestone(self.game, "a")

        milestone = add_milestone(self.game, "  Find the key ", "Behind the waterfall", category="exploration")

        self.assertEqual(milestone.title, "Find the key")
        self.assertEqual(self.game.milestones[-1].id, milestone.id)
        self.assertEqual(self.game.progress, 33)

    def test_add_requires_title_and_description(self):
        with self.assertRaises(ValueError):
            add_milestone(self.game, "Title", "  ")
        with self.assertRaises(ValueError):
            add_milestone(self.game, "", "Description")
        self.assertEqual(len(self.game.milestones), 2)

    def test_delete_milestone_recomputes(self):
        toggle_milestone(self.game, "a")

        delete_milestone(self.game, "b")

        self.assertEqual([m.id for m in self.game.milestones], ["a"])
        self.assertEqual(self.game.progress, 100)

    def test_replace_milestones_filters_malformed(self):
        replace_milestones(self.game, [{"title": "New"}, None])

        self.assertEqual([m.title for m in self.game.milestones], ["New"])
        self.assertEqual(self.game.progress, 0)

    def test_edits_stamp_last_played(self):
        self.game.last_played = datetime(2020, 1, 1)

        toggle_milestone(self.game, "a")

        self.assertGreater(self.game.last_played, datetime(2020, 1, 1))


class TestGameStatus(unittest.TestCase):
    def test_new_game_as_playing(self):
        game = new_game("Celeste", platform="PC", milestones=[{"title": "Summit"}, None])

        self.assertEqual(game.status, GameStatus.PLAYING)
        self.assertEqual([m.title for m in game.milestones], ["Summit"])
        self.assertEqual(game.progress, 0)

    def test_new_completed_game_marks_every_milestone(self):
        now = datetime(2024, 3, 1, 20, 0)

        game = new_game(
            "Celeste",
            status="completed",
            milestones=[{"title": "Summit"}, {"title": "Farewell"}],
            now=now,
        )

        self.assertTrue(all(m.completed for m in game.milestones))
        self.assertEqual(game.milestones[0].completed_date, now)
        self.assertEqual(game.progress, 100)
        self.assertEqual(game.last_played, now)

    def test_status_change_keeps_progress(self):
        game = new_game("Celeste", milestones=[{"title": "Summit"}, {"title": "Farewell"}])
        toggle_milestone(game, game.milestones[0].id)
        now = datetime(2024, 3, 2, 9, 0)

        set_status(game, GameStatus.COMPLETED, now=now)

        self.assertEqual(game.status, GameStatus.COMPLETED)
        self.assertEqual(game.progress, 50)
        self.assertEqual(game.last_played, now)

    def test_unknown_status_rejected(self):
        game = new_game("Celeste")

        with self.assertRaises(ValueError):
            set_status(game, "abandoned")

    def test_stored_unknown_status_reads_as_playing(self):
        game = Game.model_validate({"title": "Old save", "status": "wishlist"})

        self.assertEqual(game.status, GameStatus.PLAYING)


if __name__ == "__main__":
    unittest.main(verbosity=2)

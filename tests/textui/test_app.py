"""Tests for the plan confirmation flow of ShelfSortApp."""

import asyncio
import threading

from textual.widgets import Tree

from textui import ShelfSortApp
from workflows import CabinetPlan, FileMovement, OrganizationPlan, ShelfPlan


def sample_plan():
    return OrganizationPlan(
        cabinets=[
            CabinetPlan(name="Documents", description="Paperwork", shelves=[
                ShelfPlan(name="TextFiles", description="Text", item_count=2),
            ]),
            CabinetPlan(name="Recipes", description="Cooking", shelves=[
                ShelfPlan(name="Markdown", description="Recipes", item_count=1),
            ]),
        ],
        movements=[
            FileMovement(source="/data/a.txt", cabinet="Documents", shelf="TextFiles"),
            FileMovement(source="/data/b.txt", cabinet="Documents", shelf="TextFiles"),
            FileMovement(source="/data/c.md", cabinet="Recipes", shelf="Markdown"),
        ],
    )


def ask_and_answer(key):
    """Call confirm_plan from a run thread, press key, return (decision, app)."""
    decision = {}

    async def scenario():
        app = ShelfSortApp(root="/data", provider="stub")
        async with app.run_test() as pilot:
            thread = threading.Thread(
                target=lambda: decision.setdefault("approved", app.confirm_plan(sample_plan())),
                daemon=True,
            )
            thread.start()
            for _ in range(100):
                if app.awaiting_confirmation:
                    break
                await pilot.pause(0.05)
            assert app.awaiting_confirmation

            tree = app.query_one("#plan-tree", Tree)
            decision["cabinets"] = [str(node.label) for node in tree.root.children]
            decision["shelves"] = [str(leaf.label) for leaf in tree.root.children[0].children]

            await pilot.press(key)
            await asyncio.get_running_loop().run_in_executor(None, thread.join, 5)
            decision["status"] = app.status_text
            decision["still_waiting"] = app.awaiting_confirmation

    asyncio.run(scenario())
    return decision


class TestConfirmPlan:
    """Tests for ShelfSortApp.confirm_plan()."""

    def test_approve(self):
        result = ask_and_answer("y")
        assert result["approved"] is True
        assert result["still_waiting"] is False
        assert "Moving" in result["status"]

    def test_decline(self):
        result = ask_and_answer("n")
        assert result["approved"] is False
        assert "nothing moved" in result["status"]

    def test_plan_tree(self):
        result = ask_and_answer("n")
        assert result["cabinets"] == ["Documents", "Recipes"]
        assert result["shelves"] == ["TextFiles (2)"]

    def test_keys_ignored_without_plan(self):
        async def scenario():
            app = ShelfSortApp(root="/data", provider="stub")
            async with app.run_test() as pilot:
                await pilot.press("y")
                return app.awaiting_confirmation, app._decided.is_set()

        assert asyncio.run(scenario()) == (False, False)


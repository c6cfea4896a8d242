"""Tests for plan execution."""

import os

import pytest

from storage import LocalDriver, StorageError
from workflows import (
    CabinetPlan, ShelfPlan, FileMovement, OrganizationPlan,
    execute_plan, destination_name,
)


def plan_for(*movements):
    shelves = {}
    for m in movements:
        shelves.setdefault(m.cabinet, set()).add(m.shelf)
    return OrganizationPlan(
        cabinets=[
            CabinetPlan(name=cabinet, description="", shelves=[
                ShelfPlan(name=shelf, description="") for shelf in sorted(names)
            ])
            for cabinet, names in sorted(shelves.items())
        ],
        movements=list(movements),
    )


class TestDestinationName:
    """Tests for destination_name()."""

    @pytest.fixture
    def driver(self, root):
        return LocalDriver(root)

    def test_original_name(self, driver):
        movement = FileMovement(source="/data/report.pdf", cabinet="A", shelf="B")
        assert destination_name(movement, driver, is_file=True) == "report.pdf"

    def test_suggestion_gets_extension(self, driver):
        movement = FileMovement(source="/data/scan001.pdf", cabinet="A", shelf="B",
                                new_name="Tax Return 2023")
        assert destination_name(movement, driver, is_file=True) == "Tax Return 2023.pdf"

    def test_suggestion_with_extension_unchanged(self, driver):
        movement = FileMovement(source="/data/scan001.pdf", cabinet="A", shelf="B",
                                new_name="Tax Return.PDF")
        assert destination_name(movement, driver, is_file=True) == "Tax Return.PDF"

    def test_directory_suggestion(self, driver):
        movement = FileMovement(source="/data/proj", cabinet="A", shelf="B",
                                new_name="Website: v2")
        assert destination_name(movement, driver, is_file=False) == "Website- v2"

    def test_unusable_suggestion(self, driver):
        movement = FileMovement(source="/data/notes.txt", cabinet="A", shelf="B",
                                new_name="???")
        assert destination_name(movement, driver, is_file=True) == "notes.txt"


class TestExecutePlan:
    """Tests for execute_plan()."""

    def test_creates_folders_and_moves(self, root, write):
        source = write(os.path.join(root, "file1.txt"), "hello")
        plan = plan_for(FileMovement(source=source, cabinet="Documents", shelf="TextFiles"))

        report = execute_plan(plan, root)

        dest = os.path.join(root, "Documents", "TextFiles", "file1.txt")
        assert report.directories == 2
        assert report.moved == [(source, dest)]
        assert not os.path.exists(source)
        with open(dest) as f:
            assert f.read() == "hello"

    def test_empty_shelf_folder_created(self, root):
        plan = OrganizationPlan(cabinets=[
            CabinetPlan(name="Documents", description="", shelves=[
                ShelfPlan(name="Empty", description="")
            ])
        ])
        execute_plan(plan, root)
        assert os.path.isdir(os.path.join(root, "Documents", "Empty"))

    def test_rename(self, root, write):
        source = write(os.path.join(root, "scan001.txt"))
        plan = plan_for(FileMovement(source=source, cabinet="Documents", shelf="Letters",
                                     new_name="Letter to Bob"))

        execute_plan(plan, root)

        assert os.path.isfile(os.path.join(root, "Documents", "Letters", "Letter to Bob.txt"))

    def test_collision_numbered(self, root, write):
        write(os.path.join(root, "Documents", "Letters", "note.txt"), "existing")
        source = write(os.path.join(root, "note.txt"), "incoming")
        plan = plan_for(FileMovement(source=source, cabinet="Documents", shelf="Letters"))

        execute_plan(plan, root)

        folder = os.path.join(root, "Documents", "Letters")
        with open(os.path.join(folder, "note.txt")) as f:
            assert f.read() == "existing"
        with open(os.path.join(folder, "note (2).txt")) as f:
            assert f.read() == "incoming"

    def test_vanished_source_skipped(self, root):
        missing = os.path.join(root, "gone.txt")
        plan = plan_for(FileMovement(source=missing, cabinet="Documents", shelf="Letters"))

        report = execute_plan(plan, root)

        assert report.skipped == [missing]
        assert report.moved == []

    def test_idempotent(self, root, write):
        first = write(os.path.join(root, "a.txt"))
        second = write(os.path.join(root, "b.md"))
        plan = plan_for(
            FileMovement(source=first, cabinet="Documents", shelf="TextFiles"),
            FileMovement(source=second, cabinet="Recipes", shelf="Markdown"),
        )

        execute_plan(plan, root)
        report = execute_plan(plan, root)

        assert report.moved == []
        assert report.directories == 0
        assert len(report.skipped) == 2
        assert os.path.isfile(os.path.join(root, "Documents", "TextFiles", "a.txt"))
        assert os.path.isfile(os.path.join(root, "Recipes", "Markdown", "b.md"))

    def test_already_in_place(self, root, write):
        source = write(os.path.join(root, "Documents", "Letters", "a.txt"))
        plan = plan_for(FileMovement(source=source, cabinet="Documents", shelf="Letters"))

        report = execute_plan(plan, root)

        assert report.skipped == [source]
        assert os.path.isfile(source)

    def test_destination_inside_source(self, root, write):
        write(os.path.join(root, "Documents", "old.txt"))
        source = os.path.join(root, "Documents")
        plan = plan_for(FileMovement(source=source, cabinet="Documents", shelf="Folders"))

        report = execute_plan(plan, root)

        assert report.skipped == [source]
        assert os.path.isfile(os.path.join(root, "Documents", "old.txt"))

    def test_children_move_before_parent(self, root, write):
        child = write(os.path.join(root, "projects", "notes.txt"))
        write(os.path.join(root, "projects", "code.py"))
        parent = os.path.join(root, "projects")
        plan = plan_for(
            FileMovement(source=child, cabinet="Documents", shelf="Notes"),
            FileMovement(source=parent, cabinet="Work", shelf="Projects"),
        )

        execute_plan(plan, root)

        assert os.path.isfile(os.path.join(root, "Documents", "Notes", "notes.txt"))
        assert os.path.isfile(os.path.join(root, "Work", "Projects", "projects", "code.py"))

    def test_move_failure_aborts(self, root, write, monkeypatch):
        first = write(os.path.join(root, "a.txt"))
        second = write(os.path.join(root, "b.txt"))
        plan = plan_for(
            FileMovement(source=first, cabinet="Documents", shelf="Letters"),
            FileMovement(source=second, cabinet="Documents", shelf="Letters"),
        )

        def failing_move(self, src, dest):
            raise StorageError("disk full")

        monkeypatch.setattr(LocalDriver, "move_path", failing_move)

        with pytest.raises(StorageError):
            execute_plan(plan, root)
        assert os.path.isfile(second)

"""Tests for project/task aggregation and entry building."""

from datetime import datetime, timedelta

from support import at

from time_ledger.core.aggregation import (
    UNKNOWN_PROJECT,
    aggregate,
    build_entries,
    display_name,
)
from time_ledger.core.models import Project, Task, TimeInterval


class TestAggregate:
    """Test aggregate()."""

    def test_project_and_task_totals(self, sample_records) -> None:  # type: ignore[no-untyped-def]
        projects, tasks, intervals = sample_records
        views = aggregate(projects, tasks, intervals)

        assert [v.id for v in views] == ["P1", "P2"]
        p1, p2 = views
        assert p1.total_time == timedelta(milliseconds=1500)
        assert [t.id for t in p1.tasks] == ["T1"]
        assert p1.tasks[0].total_time == timedelta(milliseconds=1000)
        assert p2.total_time == timedelta(milliseconds=900)
        assert p2.tasks == []

    def test_idempotent(self, sample_records) -> None:  # type: ignore[no-untyped-def]
        projects, tasks, intervals = sample_records
        first = aggregate(projects, tasks, intervals)
        second = aggregate(projects, tasks, intervals)
        assert [v.to_dict() for v in first] == [v.to_dict() for v in second]

    def test_empty_inputs(self) -> None:
        assert aggregate([], [], []) == []

    def test_project_without_intervals_has_zero_total(self) -> None:
        project = Project(id="P", name="Quiet", user_id="u")
        task = Task(id="T", name="Nothing", project_id="P")
        (view,) = aggregate([project], [task], [])
        assert view.total_time == timedelta(0)
        assert view.tasks[0].total_time == timedelta(0)

    def test_task_total_never_exceeds_project_total(self, sample_records) -> None:  # type: ignore[no-untyped-def]
        projects, tasks, intervals = sample_records
        for view in aggregate(projects, tasks, intervals):
            assert sum((t.total_time for t in view.tasks), timedelta(0)) <= view.total_time

    def test_orphan_intervals_contribute_nothing(self) -> None:
        project = Project(id="P", name="Known", user_id="u")
        orphan = TimeInterval(
            project_id="missing", user_id="u", start_time=at(9), end_time=at(10)
        )
        (view,) = aggregate([project], [], [orphan])
        assert view.total_time == timedelta(0)

    def test_task_from_other_project_is_not_counted(self) -> None:
        project = Project(id="P", name="One", user_id="u")
        task = Task(id="T", name="Task", project_id="P")
        stray = TimeInterval(
            project_id="Q", task_id="T", user_id="u", start_time=at(9), end_time=at(10)
        )
        (view,) = aggregate([project], [task], [stray])
        assert view.tasks[0].total_time == timedelta(0)

    def test_malformed_intervals_are_clamped(self) -> None:
        project = Project(id="P", name="One", user_id="u")
        intervals = [
            TimeInterval(project_id="P", user_id="u", start_time=at(10), end_time=at(9)),
            TimeInterval(project_id="P", user_id="u", start_time=None, end_time=at(9)),  # type: ignore[arg-type]
            TimeInterval(project_id="P", user_id="u", start_time=at(9), end_time=at(9, 15)),
        ]
        (view,) = aggregate([project], [], intervals)
        assert view.total_time == timedelta(minutes=15)

    def test_keeps_caller_order(self) -> None:
        projects = [
            Project(id="b", name="Bravo", user_id="u"),
            Project(id="a", name="Alpha", user_id="u"),
        ]
        assert [v.id for v in aggregate(projects, [], [])] == ["b", "a"]


class TestDisplayName:
    """Test display_name()."""

    def test_project_and_task(self) -> None:
        project = Project(name="Website", user_id="u")
        task = Task(name="Header", project_id=project.id)
        assert display_name(project, task) == "Website - Header"

    def test_project_only(self) -> None:
        assert display_name(Project(name="Website", user_id="u"), None) == "Website"

    def test_unknown_project(self) -> None:
        assert display_name(None, None) == UNKNOWN_PROJECT


class TestBuildEntries:
    """Test build_entries()."""

    def test_newest_first_with_names(self, sample_records) -> None:  # type: ignore[no-untyped-def]
        projects, tasks, intervals = sample_records
        entries = build_entries(projects, tasks, list(reversed(intervals)))

        assert [e.id for e in entries] == ["i3", "i2", "i1"]
        assert entries[0].display_name == "Beta"
        assert entries[2].display_name == "Alpha - Design"

    def test_open_intervals_are_skipped(self) -> None:
        project = Project(id="P", name="One", user_id="u")
        running = TimeInterval(project_id="P", user_id="u", start_time=at(9))
        assert build_entries([project], [], [running]) == []

    def test_start_time_breaks_created_at_ties(self) -> None:
        project = Project(id="P", name="One", user_id="u")
        created = datetime(2024, 3, 1, 12, 0)
        early = TimeInterval(
            id="early", project_id="P", user_id="u",
            start_time=at(8), end_time=at(9), created_at=created,
        )
        late = TimeInterval(
            id="late", project_id="P", user_id="u",
            start_time=at(10), end_time=at(11), created_at=created,
        )
        assert [e.id for e in build_entries([project], [], [early, late])] == ["late", "early"]

    def test_unknown_project_name(self) -> None:
        interval = TimeInterval(
            project_id="gone", user_id="u", start_time=at(9), end_time=at(10)
        )
        (entry,) = build_entries([], [], [interval])
        assert entry.display_name == UNKNOWN_PROJECT

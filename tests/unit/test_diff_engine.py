"""Unit tests for the field-level snapshot diff."""

import pytest

from vitae.contexts.comparison import (
    DiffStatus,
    diff,
    field_status,
    format_diff_report,
    group_by_section,
    summarize,
)
from vitae.contexts.editing import EMPTY_SNAPSHOT, BlockTree, LayoutAttributes, build_snapshot
from vitae.contexts.editing import snapshot_from_resume_data, tree_from_resume_data

SWAPPED = {
    DiffStatus.ADDED: DiffStatus.REMOVED,
    DiffStatus.REMOVED: DiffStatus.ADDED,
    DiffStatus.MODIFIED: DiffStatus.MODIFIED,
    DiffStatus.UNCHANGED: DiffStatus.UNCHANGED,
}


def personal(**fields):
    return snapshot_from_resume_data({"personal_info": fields})


@pytest.mark.unit
@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("", "x", DiffStatus.ADDED),
        (None, "x", DiffStatus.ADDED),
        ("x", "", DiffStatus.REMOVED),
        ("x", None, DiffStatus.REMOVED),
        ("x", "y", DiffStatus.MODIFIED),
        ("x", "x", DiffStatus.UNCHANGED),
        ("", "", DiffStatus.UNCHANGED),
        (None, "", DiffStatus.UNCHANGED),
    ],
)
def test_field_status(a, b, expected):
    assert field_status(a, b) is expected


@pytest.mark.unit
def test_full_name_added():
    """Empty name vs "Alex Chen" is one added Personal Info field."""
    fields = diff(personal(full_name=""), personal(full_name="Alex Chen"))

    assert len(fields) == 1
    assert fields[0].section == "Personal Info"
    assert fields[0].label == "Full Name"
    assert fields[0].status is DiffStatus.ADDED
    assert fields[0].value_b == "Alex Chen"
    assert fields[0].entry_index is None


@pytest.mark.unit
def test_identical_snapshots_have_no_diff(base_snapshot, google_snapshot):
    assert diff(base_snapshot, base_snapshot) == []
    assert diff(google_snapshot, google_snapshot) == []
    assert diff(EMPTY_SNAPSHOT, EMPTY_SNAPSHOT) == []


@pytest.mark.unit
def test_swapping_arguments_swaps_added_and_removed(base_snapshot, google_snapshot):
    forward = diff(base_snapshot, google_snapshot, include_unchanged=True)
    backward = diff(google_snapshot, base_snapshot, include_unchanged=True)

    assert [f.label for f in forward] == [f.label for f in backward]
    for f, b in zip(forward, backward):
        assert b.status is SWAPPED[f.status]
        assert (b.value_a, b.value_b) == (f.value_b, f.value_a)


@pytest.mark.unit
def test_diff_from_empty_covers_every_non_empty_field(base_snapshot):
    """Every non-empty field of every block appears exactly once, as added."""
    fields = diff(EMPTY_SNAPSHOT, base_snapshot)

    assert all(f.status is DiffStatus.ADDED for f in fields)
    assert len(fields) == sum(1 for block in base_snapshot for _, value in block.fields if value)


@pytest.mark.unit
def test_fixture_diff(base_snapshot, google_snapshot):
    """Known differences between the two fixture resumes, in section order."""
    fields = diff(base_snapshot, google_snapshot)

    assert [(f.label, f.status) for f in fields] == [
        ("Location", DiffStatus.MODIFIED),
        ("Summary", DiffStatus.MODIFIED),
        ("Experience 1 - Title", DiffStatus.MODIFIED),
        ("Experience 2 - Company", DiffStatus.REMOVED),
        ("Experience 2 - Title", DiffStatus.REMOVED),
        ("Experience 2 - Location", DiffStatus.REMOVED),
        ("Experience 2 - Start Date", DiffStatus.REMOVED),
        ("Experience 2 - End Date", DiffStatus.REMOVED),
        ("Experience 2 - Description", DiffStatus.REMOVED),
        ("Languages - Items", DiffStatus.MODIFIED),
        ("Infrastructure - Category", DiffStatus.ADDED),
        ("Infrastructure - Items", DiffStatus.ADDED),
    ]
    assert summarize(fields) == {"added": 2, "removed": 6, "modified": 4, "unchanged": 0}
    assert list(group_by_section(fields)) == ["Personal Info", "Experience", "Skills"]


@pytest.mark.unit
def test_list_entries_compare_by_position():
    """Inserting an entry at the front shows as modified entries plus one added at the end."""
    before = snapshot_from_resume_data({"experience": [{"company": "Initech"}, {"company": "Globex"}]})
    after = snapshot_from_resume_data(
        {"experience": [{"company": "Hooli"}, {"company": "Initech"}, {"company": "Globex"}]}
    )

    fields = diff(before, after)

    assert [(f.label, f.status, f.entry_index) for f in fields] == [
        ("Experience 1 - Company", DiffStatus.MODIFIED, 0),
        ("Experience 2 - Company", DiffStatus.MODIFIED, 1),
        ("Experience 3 - Company", DiffStatus.ADDED, 2),
    ]


@pytest.mark.unit
def test_entry_title_prefers_first_snapshot():
    before = snapshot_from_resume_data({"projects": [{"name": "ledger", "link": "a"}]})
    after = snapshot_from_resume_data({"projects": [{"name": "ledger2", "link": "b"}]})

    labels = [f.label for f in diff(before, after)]

    assert labels == ["ledger - Name", "ledger - Link"]


@pytest.mark.unit
def test_untitled_entry_falls_back_to_position():
    before = snapshot_from_resume_data({"skills": [{"category": "", "items": "Go"}]})
    after = snapshot_from_resume_data({"skills": [{"category": "", "items": "Rust"}]})

    assert [f.label for f in diff(before, after)] == ["Skill Group 1 - Items"]


@pytest.mark.unit
def test_layout_is_ignored(base_data):
    tree = tree_from_resume_data(base_data)
    before = build_snapshot(tree)
    tree.set_layout("section-experience", LayoutAttributes(direction="horizontal", spacing=12))

    assert diff(before, build_snapshot(tree)) == []


@pytest.mark.unit
def test_include_unchanged_reports_every_declared_field():
    fields = diff(personal(full_name="Alex Chen"), personal(full_name="Alex Chen"), include_unchanged=True)

    personal_fields = [f for f in fields if f.section == "Personal Info"]
    assert [f.field for f in personal_fields] == ["full_name", "email", "phone", "location", "website", "summary"]
    assert all(f.status is DiffStatus.UNCHANGED for f in fields)


@pytest.mark.unit
def test_diff_of_hand_built_tree():
    """Entries are found wherever they sit in the forest."""
    tree = BlockTree()
    group = tree.add_block(None, "container", {"title": "Everything"})
    tree.add_block(group.block_id, "education-entry", {"school": "MIT", "gpa": "4.0"})

    fields = diff(EMPTY_SNAPSHOT, build_snapshot(tree))

    assert [(f.section, f.label) for f in fields] == [
        ("Education", "Education 1 - School"),
        ("Education", "Education 1 - GPA"),
        ("Other", "Container 1 - Title"),
    ]


@pytest.mark.unit
def test_free_form_entry_fields_are_compared():
    """Payload keys outside the declared fields follow them, in key order."""
    before = snapshot_from_resume_data({"experience": [{"company": "Hooli", "team": "Infra"}]})
    after = snapshot_from_resume_data(
        {"experience": [{"company": "Hooli", "team": "Search", "team_size": "12"}]}
    )

    fields = diff(before, after)

    assert [(f.label, f.field, f.status) for f in fields] == [
        ("Experience 1 - Team", "team", DiffStatus.MODIFIED),
        ("Experience 1 - Team Size", "team_size", DiffStatus.ADDED),
    ]


@pytest.mark.unit
def test_free_form_personal_fields_are_compared():
    fields = diff(personal(full_name="Alex Chen", pronouns="they/them"), personal(full_name="Alex Chen"))

    assert [(f.section, f.label, f.status) for f in fields] == [
        ("Personal Info", "Pronouns", DiffStatus.REMOVED),
    ]


@pytest.mark.unit
def test_blocks_outside_sections_are_compared():
    """Containers and extra personal-info blocks are reported under Other."""
    tree = BlockTree()
    tree.add_block(None, "personal-info", {"full_name": "Alex Chen"}, block_id="me")
    tree.add_block(None, "personal-info", {"email": "old@example.com"}, block_id="alt")
    awards = tree.add_block(None, "container", {"title": "Awards"}, block_id="awards")
    before = build_snapshot(tree)

    tree.update_block("alt", {"email": "new@example.com"})
    tree.update_block(awards.block_id, {"title": "Honors"})

    fields = diff(before, build_snapshot(tree))

    assert [(f.section, f.label, f.status, f.entry_index) for f in fields] == [
        ("Other", "Personal Info 1 - Email", DiffStatus.MODIFIED, 0),
        ("Other", "Container 2 - Title", DiffStatus.MODIFIED, 1),
    ]


class TestDiffReport:
    """Markdown rendering of diffs."""

    @pytest.mark.unit
    def test_report_groups_by_section(self, base_snapshot, google_snapshot):
        report = format_diff_report(diff(base_snapshot, google_snapshot), "main", "google-swe")

        assert report.startswith("# Changes: main → google-swe\n")
        assert "2 added, 6 removed, 4 modified" in report
        assert report.index("## Personal Info") < report.index("## Experience") < report.index("## Skills")
        assert "## Education" not in report
        assert "**Experience 1 - Title** (modified): `Software Engineer` → `Senior Software Engineer`" in report
        assert "~~`Globex`~~" in report

    @pytest.mark.unit
    def test_report_without_changes(self):
        report = format_diff_report([], "a", "b")

        assert "_No differences._" in report
        assert report.endswith("\n")

    @pytest.mark.unit
    def test_long_values_are_shortened(self):
        fields = diff(personal(summary=""), personal(summary="word " * 100))

        report = format_diff_report(fields, max_value_length=20)

        assert "`word word word word…`" in report

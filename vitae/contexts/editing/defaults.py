"""
Default values and section schemas for VITAE resume content.

Provides shared definitions used by:
- block_tree.py (valid block types, default layout)
- resume_data.py (section-shaped documents <-> block trees)
- diff_engine.py (field declaration order and labels per section)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

# Block types
PERSONAL_INFO = "personal-info"
EXPERIENCE_ENTRY = "experience-entry"
EDUCATION_ENTRY = "education-entry"
SKILL_GROUP = "skill-group"
PROJECT_ENTRY = "project-entry"
CONTAINER = "container"

BLOCK_TYPES = (
    PERSONAL_INFO,
    EXPERIENCE_ENTRY,
    EDUCATION_ENTRY,
    SKILL_GROUP,
    PROJECT_ENTRY,
    CONTAINER,
)

# Layout attributes (presentational, ignored by diffs)
LAYOUT_DIRECTIONS = ("vertical", "horizontal")
LAYOUT_ALIGNMENTS = ("start", "center", "end")

DEFAULT_LAYOUT: Dict[str, Any] = {
    "direction": "vertical",
    "spacing": 0,
    "padding_top": 0,
    "padding_right": 0,
    "padding_bottom": 0,
    "padding_left": 0,
    "alignment": "start",
}


@dataclass(frozen=True)
class FieldSpec:
    """One declared content field: payload key and human label."""

    key: str
    label: str


@dataclass(frozen=True)
class SectionSchema:
    """
    Declared shape of one resume section.

    Attributes:
        key: Section key in resume data (e.g., "experience")
        title: Section display name (e.g., "Experience")
        block_type: Block type holding this section's content
        fields: Declared fields, in display order
        entry_label: Label prefix for list entries (e.g., "Experience" -> "Experience 2")
        title_field: Field whose value names an entry in diff labels, if any
        is_list: False for the single personal-info block
    """

    key: str
    title: str
    block_type: str
    fields: Tuple[FieldSpec, ...]
    entry_label: str = ""
    title_field: Optional[str] = None
    is_list: bool = True

    @property
    def field_keys(self) -> Tuple[str, ...]:
        return tuple(f.key for f in self.fields)


PERSONAL_INFO_SCHEMA = SectionSchema(
    key="personal_info",
    title="Personal Info",
    block_type=PERSONAL_INFO,
    fields=(
        FieldSpec("full_name", "Full Name"),
        FieldSpec("email", "Email"),
        FieldSpec("phone", "Phone"),
        FieldSpec("location", "Location"),
        FieldSpec("website", "Website"),
        FieldSpec("summary", "Summary"),
    ),
    is_list=False,
)

EXPERIENCE_SCHEMA = SectionSchema(
    key="experience",
    title="Experience",
    block_type=EXPERIENCE_ENTRY,
    fields=(
        FieldSpec("company", "Company"),
        FieldSpec("title", "Title"),
        FieldSpec("location", "Location"),
        FieldSpec("start_date", "Start Date"),
        FieldSpec("end_date", "End Date"),
        FieldSpec("description", "Description"),
    ),
    entry_label="Experience",
)

EDUCATION_SCHEMA = SectionSchema(
    key="education",
    title="Education",
    block_type=EDUCATION_ENTRY,
    fields=(
        FieldSpec("school", "School"),
        FieldSpec("degree", "Degree"),
        FieldSpec("field", "Field"),
        FieldSpec("start_date", "Start Date"),
        FieldSpec("end_date", "End Date"),
        FieldSpec("gpa", "GPA"),
    ),
    entry_label="Education",
)

SKILLS_SCHEMA = SectionSchema(
    key="skills",
    title="Skills",
    block_type=SKILL_GROUP,
    fields=(
        FieldSpec("category", "Category"),
        FieldSpec("items", "Items"),
    ),
    entry_label="Skill Group",
    title_field="category",
)

PROJECTS_SCHEMA = SectionSchema(
    key="projects",
    title="Projects",
    block_type=PROJECT_ENTRY,
    fields=(
        FieldSpec("name", "Name"),
        FieldSpec("description", "Description"),
        FieldSpec("technologies", "Technologies"),
        FieldSpec("link", "Link"),
    ),
    entry_label="Project",
    title_field="name",
)

# Fixed section order for diffs and exports
SECTION_SCHEMAS = (
    PERSONAL_INFO_SCHEMA,
    EXPERIENCE_SCHEMA,
    EDUCATION_SCHEMA,
    SKILLS_SCHEMA,
    PROJECTS_SCHEMA,
)

LIST_SECTION_SCHEMAS = tuple(s for s in SECTION_SCHEMAS if s.is_list)

SECTION_BY_BLOCK_TYPE = {s.block_type: s for s in SECTION_SCHEMAS}
SECTION_BY_KEY = {s.key: s for s in SECTION_SCHEMAS}


def get_default_layout() -> Dict[str, Any]:
    """Fresh copy of the default layout attributes."""
    return DEFAULT_LAYOUT.copy()

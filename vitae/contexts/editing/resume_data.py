"""
Resume Data Conversion

Converts between section-shaped resume documents (what an editor form or a
YAML file holds) and block trees / snapshots.

Resume data layout:

    personal_info: {full_name, email, phone, location, website, summary}
    experience:    [{company, title, location, start_date, end_date, description}, ...]
    education:     [{school, degree, field, start_date, end_date, gpa}, ...]
    skills:        [{category, items}, ...]
    projects:      [{name, description, technologies, link}, ...]

Block ids are derived from section and position ("experience-2"), so the same
document always produces the same snapshot.
"""

from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from omegaconf import OmegaConf

from vitae.contexts.editing.block_tree import BlockTree
from vitae.contexts.editing.defaults import (
    CONTAINER,
    LIST_SECTION_SCHEMAS,
    PERSONAL_INFO_SCHEMA,
    SECTION_SCHEMAS,
    SectionSchema,
)
from vitae.contexts.editing.logger import _log_debug, _log_info
from vitae.contexts.editing.snapshot_builder import Snapshot, build_snapshot, resume_sections
from vitae.exceptions import InvalidResumeDataError


def empty_resume_data() -> Dict[str, Any]:
    """Resume data with every declared field present and empty."""
    data: Dict[str, Any] = {PERSONAL_INFO_SCHEMA.key: {k: "" for k in PERSONAL_INFO_SCHEMA.field_keys}}
    for schema in LIST_SECTION_SCHEMAS:
        data[schema.key] = []
    return data


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        # Skill items are often written as YAML lists
        return ", ".join(_to_string(v) for v in value)
    return str(value)


def _entry_content(entry: Mapping[str, Any], schema: SectionSchema, where: str) -> Dict[str, str]:
    if not isinstance(entry, Mapping):
        raise InvalidResumeDataError(f"{where} must be a mapping, got {type(entry).__name__}")
    # Declared fields first, then any extra free-form fields
    content = {key: _to_string(entry.get(key)) for key in schema.field_keys}
    for key, value in entry.items():
        if key not in content and key != "id":
            content[str(key)] = _to_string(value)
    return content


def tree_from_resume_data(
    data: Mapping[str, Any], id_factory: Optional[Callable[[], str]] = None
) -> BlockTree:
    """
    Build a block tree from resume data.

    Produces one personal-info block followed by one titled container per list
    section (in fixed section order), each holding its entries in list order.

    Args:
        data: Resume data mapping (missing sections are treated as empty)
        id_factory: Id source for blocks added later in the returned tree

    Returns:
        Clean BlockTree

    Raises:
        InvalidResumeDataError: If a section has the wrong shape
    """
    if not isinstance(data, Mapping):
        raise InvalidResumeDataError(f"Resume data must be a mapping, got {type(data).__name__}")

    tree = BlockTree(id_factory=id_factory)

    personal = data.get(PERSONAL_INFO_SCHEMA.key) or {}
    tree.add_block(
        None,
        PERSONAL_INFO_SCHEMA.block_type,
        _entry_content(personal, PERSONAL_INFO_SCHEMA, PERSONAL_INFO_SCHEMA.key),
        block_id=PERSONAL_INFO_SCHEMA.block_type,
    )

    for schema in LIST_SECTION_SCHEMAS:
        entries = data.get(schema.key) or []
        if not isinstance(entries, (list, tuple)):
            raise InvalidResumeDataError(
                f"Section '{schema.key}' must be a list, got {type(entries).__name__}"
            )

        container = tree.add_block(
            None,
            CONTAINER,
            {"title": schema.title, "section": schema.key},
            block_id=f"section-{schema.key}",
        )
        for index, entry in enumerate(entries, start=1):
            tree.add_block(
                container.block_id,
                schema.block_type,
                _entry_content(entry, schema, f"{schema.key}[{index - 1}]"),
                block_id=f"{schema.key}-{index}",
            )

    tree.mark_clean()
    _log_debug(f"Built tree with {len(tree)} blocks from resume data")
    return tree


def snapshot_from_resume_data(data: Mapping[str, Any]) -> Snapshot:
    """Convenience: resume data -> tree -> snapshot."""
    return build_snapshot(tree_from_resume_data(data))


def snapshot_to_resume_data(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Resolve a snapshot into resume data for export/rendering.

    Every declared field is present (empty string when the block lacks it);
    extra payload fields are kept after the declared ones.
    """
    sections = resume_sections(snapshot)
    data: Dict[str, Any] = {}

    for schema in SECTION_SCHEMAS:
        if schema.is_list:
            data[schema.key] = [_with_declared_fields(entry, schema) for entry in sections[schema.key]]
        else:
            data[schema.key] = _with_declared_fields(sections[schema.key], schema)

    return data


def _with_declared_fields(content: Mapping[str, str], schema: SectionSchema) -> Dict[str, str]:
    ordered = {key: content.get(key, "") for key in schema.field_keys}
    for key, value in content.items():
        ordered.setdefault(key, value)
    return ordered


def load_resume_yaml(yaml_path: Path) -> Dict[str, Any]:
    """
    Load resume data from a YAML file.

    Args:
        yaml_path: Path to resume data YAML

    Returns:
        Resume data dict (interpolations resolved)

    Raises:
        FileNotFoundError: If yaml_path does not exist
        InvalidResumeDataError: If the top level is not a mapping
    """
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"Resume data file not found: {yaml_path}")

    loaded = OmegaConf.to_container(OmegaConf.load(yaml_path), resolve=True)
    if not isinstance(loaded, dict):
        raise InvalidResumeDataError(f"Invalid resume data: top level of {yaml_path} must be a mapping")

    return loaded


def save_resume_yaml(data: Mapping[str, Any], yaml_path: Path) -> Path:
    """Write resume data to YAML, creating parent directories."""
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(OmegaConf.create(dict(data)), yaml_path)
    _log_info(f"Wrote resume data to {yaml_path}")
    return yaml_path


"""
VITAE - Version-controlled resumes

A domain-driven core for keeping resumes under version control: structured
content blocks, immutable snapshots, commits on named branches, and a
field-level diff between any two snapshots.

Architecture:
- Editing Context: Content block tree, snapshots, resume data conversion
- History Context: Commit graph, branches, persistence stores
- Comparison Context: Section-grouped diffs and diff reports
"""

__version__ = "0.1.0"

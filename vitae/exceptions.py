"""
Error taxonomy for VITAE.

Every failure the core can report is a VitaeError subclass carrying an
ErrorKind. Core modules raise these; VersioningService turns them into
OperationResult values so callers can match on the kind and decide recovery.
"""

from enum import Enum
from typing import Iterable, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    BRANCH_NOT_FOUND = "BranchNotFound"
    RESUME_NOT_FOUND = "ResumeNotFound"
    INVALID_PARENT = "InvalidParent"
    ORDER_MISMATCH = "OrderMismatch"
    INVALID_BLOCK = "InvalidBlock"
    EMPTY_MESSAGE = "EmptyMessage"
    INVALID_NAME = "InvalidName"
    INVALID_ARGUMENT = "InvalidArgument"
    DUPLICATE_NAME = "DuplicateName"
    CANNOT_DELETE_MAIN = "CannotDeleteMain"
    CONCURRENT_MODIFICATION = "ConcurrentModification"
    NOT_ANCESTOR = "NotAncestor"
    AMBIGUOUS_REFERENCE = "AmbiguousReference"


class VitaeError(Exception):
    """Base class for all errors surfaced by the versioning core."""

    kind: ErrorKind = ErrorKind.NOT_FOUND

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Missing entities


class BlockNotFoundError(VitaeError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, block_id: str):
        self.block_id = block_id
        super().__init__(f"Block not found: {block_id}")


class CommitNotFoundError(VitaeError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, ref: str, resume_id: Optional[str] = None):
        self.ref = ref
        self.resume_id = resume_id
        message = f"Commit not found: {ref}"
        if resume_id:
            message += f" (resume {resume_id})"
        super().__init__(message)


class BranchNotFoundError(VitaeError):
    kind = ErrorKind.BRANCH_NOT_FOUND

    def __init__(self, branch_name: str, resume_id: str):
        self.branch_name = branch_name
        self.resume_id = resume_id
        super().__init__(f"Branch '{branch_name}' not found on resume {resume_id}")


class ResumeNotFoundError(VitaeError):
    kind = ErrorKind.RESUME_NOT_FOUND

    def __init__(self, resume_id: str):
        self.resume_id = resume_id
        super().__init__(f"Resume not found: {resume_id}")


# Tree structure violations


class InvalidParentError(VitaeError):
    kind = ErrorKind.INVALID_PARENT

    def __init__(self, parent_id: str):
        self.parent_id = parent_id
        super().__init__(f"Parent block does not exist in this tree: {parent_id}")


class OrderMismatchError(VitaeError):
    """
    Raised when a reorder request does not name exactly the current children.

    Attributes:
        parent_id: Parent whose children were being reordered (None = top level)
        missing: Current children absent from the request
        unexpected: Requested ids that are not current children
    """

    kind = ErrorKind.ORDER_MISMATCH

    def __init__(
        self,
        parent_id: Optional[str],
        missing: Iterable[str] = (),
        unexpected: Iterable[str] = (),
        duplicates: Iterable[str] = (),
    ):
        self.parent_id = parent_id
        self.missing = sorted(missing)
        self.unexpected = sorted(unexpected)
        self.duplicates = sorted(duplicates)

        parts = [f"Reorder ids do not match children of {parent_id or '<top level>'}"]
        if self.missing:
            parts.append(f"missing: {', '.join(self.missing)}")
        if self.unexpected:
            parts.append(f"unexpected: {', '.join(self.unexpected)}")
        if self.duplicates:
            parts.append(f"duplicated: {', '.join(self.duplicates)}")
        super().__init__("; ".join(parts))


class InvalidBlockError(VitaeError, ValueError):
    """
    Raised when a block edit carries an unknown block type, a taken block id,
    non-string content, or malformed layout attributes.

    Also a ValueError, so callers that validate input generically still catch it.
    """

    kind = ErrorKind.INVALID_BLOCK

    def __init__(self, message: str, block_id: Optional[str] = None):
        self.block_id = block_id
        super().__init__(message)


# Input validation


class EmptyMessageError(VitaeError):
    kind = ErrorKind.EMPTY_MESSAGE

    def __init__(self):
        super().__init__("Commit message must not be empty")


class InvalidNameError(VitaeError):
    kind = ErrorKind.INVALID_NAME

    def __init__(self, raw_name: str):
        self.raw_name = raw_name
        super().__init__(f"Branch name is empty after normalization: {raw_name!r}")


class InvalidArgumentError(VitaeError, ValueError):
    """Raised for an out-of-range query argument (e.g., a negative history limit)."""

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, name: str, value: object, requirement: str):
        self.name = name
        self.value = value
        super().__init__(f"{name} {requirement}, got {value!r}")


class DuplicateNameError(VitaeError):
    kind = ErrorKind.DUPLICATE_NAME

    def __init__(self, branch_name: str, resume_id: str):
        self.branch_name = branch_name
        self.resume_id = resume_id
        super().__init__(f"Branch '{branch_name}' already exists on resume {resume_id}")


class CannotDeleteMainError(VitaeError):
    kind = ErrorKind.CANNOT_DELETE_MAIN

    def __init__(self, branch_name: str):
        self.branch_name = branch_name
        super().__init__(f"Cannot delete the main branch '{branch_name}'")


# History


class ConcurrentModificationError(VitaeError):
    """
    Raised when a branch tip moved between reading it and advancing it.

    Transient: callers reload the tip and resubmit, bounded to a few attempts.
    """

    kind = ErrorKind.CONCURRENT_MODIFICATION

    def __init__(self, branch_name: str, expected_tip: Optional[str], actual_tip: Optional[str]):
        self.branch_name = branch_name
        self.expected_tip = expected_tip
        self.actual_tip = actual_tip
        super().__init__(
            f"Branch '{branch_name}' moved: expected tip {expected_tip or '<none>'}, "
            f"found {actual_tip or '<none>'}"
        )


class NotAncestorError(VitaeError):
    kind = ErrorKind.NOT_ANCESTOR

    def __init__(self, ancestor_id: str, descendant_id: str):
        self.ancestor_id = ancestor_id
        self.descendant_id = descendant_id
        super().__init__(f"Commit {ancestor_id[:7]} is not an ancestor of {descendant_id[:7]}")


class AmbiguousReferenceError(VitaeError):
    kind = ErrorKind.AMBIGUOUS_REFERENCE

    def __init__(self, ref: str, candidates: Iterable[str]):
        self.ref = ref
        self.candidates = sorted(candidates)
        preview = ", ".join(c[:12] for c in self.candidates[:5])
        super().__init__(f"Reference '{ref}' matches {len(self.candidates)} commits: {preview}")


# Input files


class InvalidResumeDataError(ValueError):
    """
    Raised when resume data (e.g., a YAML file) does not have the expected shape.

    Not a VitaeError: it describes a malformed input document rather than a
    failed operation on versioned state.
    """

    pass

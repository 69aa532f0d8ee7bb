"""Request and result records passed between the orchestrator and archiver."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ArchiveRequest:
    """What the Archiver should capture and where to put it."""

    url: str
    output_dir: Path
    input: bytes | None = None  # pre-fetched primary document
    disable_js: bool = False
    single_file: bool = False
    skip_resource_errors: bool = True


@dataclass
class ResourceError:
    """A subresource that could not be captured (non-fatal)."""

    url: str
    reason: str


@dataclass
class ArchiveResult:
    """Archived primary document plus captured resource errors."""

    content: bytes
    errors: list[ResourceError] = field(default_factory=list)
    resources: int = 0  # subresources captured

"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class EditModel(BaseModel):
    """One selection-tree action to replay, e.g. ``{"action": "toggle", "path": "src"}``."""

    action: str
    path: str | None = None


class ScanRequest(BaseModel):
    """Fields shared by every request that scans a directory."""

    root: str
    extensions: list[str] | None = None
    ignore: list[str] = Field(default_factory=list)
    exclude_tests: bool = False
    edits: list[EditModel] | None = None

    @field_validator("root")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "root must not be empty."
            raise ValueError(msg)
        return stripped


class ContextRequest(ScanRequest):
    """Request body for ``POST /context``."""

    format: str | None = None
    include_tree: bool = True
    budget: str | None = None
    reserve_tokens: int | None = Field(default=None, ge=0)
    priority: list[str] = Field(default_factory=list)
    chunk: str | None = None
    overlap: int = Field(default=0, ge=0)
    symbols: bool = False
    signatures_only: bool = False
    compact: bool = False
    model: str | None = None
    output_file: str | None = None


class LanguageStatModel(BaseModel):
    language: str
    files: int
    tokens: int


class BudgetModel(BaseModel):
    summary: str
    included: list[str]
    excluded: list[str]
    budget_used: int
    budget_remaining: int


class ChunkModel(BaseModel):
    index: int
    total: int
    files: list[str]
    tokens: int


class ContextResponse(BaseModel):
    """Successful response from ``POST /context``."""

    outputs: list[str]
    files: list[str]
    scanned_count: int
    total_tokens: int
    formatted_tokens: str
    usage_tier: str
    languages: list[LanguageStatModel]
    budget: BudgetModel | None = None
    chunks: list[ChunkModel] = Field(default_factory=list)
    symbols: dict[str, str] = Field(default_factory=dict)
    written: list[str] = Field(default_factory=list)


class TreeRequest(ScanRequest):
    """Request body for ``POST /tree``."""

    query: str = ""


class TreeRowModel(BaseModel):
    path: str
    name: str
    depth: int
    is_dir: bool
    selected: bool
    expanded: bool
    tokens: int
    file_count: int | None = None


class TreeResponse(BaseModel):
    rows: list[TreeRowModel]
    selected_count: int
    selected_tokens: int
    file_count: int
    total_tokens: int


class TokenRequest(BaseModel):
    """Request body for ``POST /tokens``."""

    text: str
    limit: int | None = Field(default=None, gt=0)


class TokenResponse(BaseModel):
    chars: int
    lines: int
    tokens: int
    estimate: int
    formatted: str
    tier: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str

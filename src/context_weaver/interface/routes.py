"""API routes — thin controllers that delegate to the use case."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends

from context_weaver.domain.ports.output_sink import OutputSink
from context_weaver.infrastructure.config import Settings
from context_weaver.infrastructure.file_sink import FileOutputSink
from context_weaver.interface.dependencies import get_app_settings, get_use_case
from context_weaver.interface.schemas import (
    BudgetModel,
    ChunkModel,
    ContextRequest,
    ContextResponse,
    ErrorResponse,
    LanguageStatModel,
    ScanRequest,
    TokenRequest,
    TokenResponse,
    TreeRequest,
    TreeResponse,
    TreeRowModel,
)
from context_weaver.services import selection_state
from context_weaver.services.assemble_context import (
    AssembleContextUseCase,
    AssemblyOptions,
    SelectionEdit,
)
from context_weaver.services.token_accountant import (
    color_tier,
    count_tokens,
    estimate_tokens,
    format_tokens,
    model_limit,
)

router = APIRouter()


def _options(body: ScanRequest, settings: Settings, **extra: object) -> AssemblyOptions:
    edits = None
    if body.edits is not None:
        edits = [SelectionEdit(action=e.action, path=e.path) for e in body.edits]
    return AssemblyOptions(
        root=Path(body.root),
        extensions=body.extensions or settings.extensions,
        ignore=body.ignore,
        exclude_tests=body.exclude_tests,
        edits=edits,
        **extra,  # type: ignore[arg-type]
    )


@router.post(
    "/context",
    response_model=ContextResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Bad scan root or output path"},
        404: {"model": ErrorResponse, "description": "A selection edit names an unknown path"},
        422: {"model": ErrorResponse, "description": "Invalid budget, format or selection action"},
    },
)
def assemble_context(
    body: ContextRequest,
    use_case: AssembleContextUseCase = Depends(get_use_case),
    settings: Settings = Depends(get_app_settings),
) -> ContextResponse:
    """Scan a directory and render it as LLM-ready context."""
    options = _options(
        body,
        settings,
        format=body.format or settings.default_format,
        include_tree=body.include_tree,
        budget=body.budget,
        reserve_tokens=body.reserve_tokens,
        priority_patterns=body.priority,
        chunk=body.chunk,
        overlap=body.overlap,
        symbols=body.symbols,
        signatures_only=body.signatures_only,
        compact=body.compact,
        model=body.model,
    )
    sink: OutputSink | None = None
    if body.output_file:
        sink = FileOutputSink(body.output_file, base_dir=settings.output_dir)

    result = use_case.execute(options)

    written: list[str] = []
    if sink is not None:
        if body.chunk:
            written = sink.write_chunks(result.outputs)
        else:
            written = [sink.write(result.outputs[0])]

    budget = None
    if result.budget is not None and result.budget_summary is not None:
        budget = BudgetModel(
            summary=result.budget_summary,
            included=[f.path for f in result.budget.included],
            excluded=[f.path for f in result.budget.excluded],
            budget_used=result.budget.budget_used,
            budget_remaining=result.budget.budget_remaining,
        )

    return ContextResponse(
        outputs=result.outputs,
        files=[f.path for f in result.files],
        scanned_count=result.scanned_count,
        total_tokens=result.total_tokens,
        formatted_tokens=format_tokens(result.total_tokens),
        usage_tier=result.usage_tier.value,
        languages=[
            LanguageStatModel(language=s.language, files=s.files, tokens=s.tokens)
            for s in result.languages
        ],
        budget=budget,
        chunks=[
            ChunkModel(
                index=c.index,
                total=c.total,
                files=[f.path for f in c.files],
                tokens=c.tokens,
            )
            for c in result.chunks
        ],
        symbols=result.symbol_summaries,
        written=written,
    )


@router.post(
    "/tree",
    response_model=TreeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Root is not a directory"},
        404: {"model": ErrorResponse, "description": "A selection edit names an unknown path"},
        422: {"model": ErrorResponse, "description": "Unknown selection action"},
    },
)
def tree(
    body: TreeRequest,
    use_case: AssembleContextUseCase = Depends(get_use_case),
    settings: Settings = Depends(get_app_settings),
) -> TreeResponse:
    """Return the visible selection-tree rows after replaying edits."""
    view = use_case.tree_view(_options(body, settings), query=body.query)

    rows: list[TreeRowModel] = []
    for node, depth in view.rows:
        if node.is_dir:
            stats = selection_state.dir_stats(node)
            tokens, file_count = stats.total_tokens, stats.file_count
        else:
            tokens, file_count = node.tokens or 0, None
        rows.append(
            TreeRowModel(
                path=node.path,
                name=node.name,
                depth=depth,
                is_dir=node.is_dir,
                selected=node.selected,
                expanded=node.expanded,
                tokens=tokens,
                file_count=file_count,
            )
        )

    return TreeResponse(
        rows=rows,
        selected_count=view.selected.file_count,
        selected_tokens=view.selected.total_tokens,
        file_count=view.total.file_count,
        total_tokens=view.total.total_tokens,
    )


@router.post("/tokens", response_model=TokenResponse)
def tokens(
    body: TokenRequest,
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """Count tokens for an arbitrary text blob."""
    info = count_tokens(body.text)
    limit = body.limit or model_limit(settings.default_model)
    return TokenResponse(
        chars=info.chars,
        lines=info.lines,
        tokens=info.tokens,
        estimate=estimate_tokens(body.text),
        formatted=format_tokens(info.tokens),
        tier=color_tier(info.tokens, limit).value,
    )

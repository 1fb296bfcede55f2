"""FastAPI dependency injection wiring."""

from __future__ import annotations

from context_weaver.infrastructure.config import Settings, get_settings
from context_weaver.infrastructure.fs_scanner import FileSystemScanner
from context_weaver.services.assemble_context import AssembleContextUseCase


def get_app_settings() -> Settings:
    return get_settings()


def get_use_case() -> AssembleContextUseCase:
    """Build the use case with the local file-system scanner injected."""
    settings = get_settings()
    return AssembleContextUseCase(
        scanner=FileSystemScanner(max_file_size_kb=settings.max_file_size_kb),
        reserve_tokens=settings.reserve_tokens,
        default_model=settings.default_model,
    )

from pathlib import Path

import pytest

from context_weaver.domain.exceptions import OutputPathError
from context_weaver.infrastructure.file_sink import FileOutputSink, chunk_path, resolve_output_path


def test_chunk_path():
    assert chunk_path(Path("out/context.md"), 2) == Path("out/context.2.md")
    assert chunk_path(Path("context"), 1) == Path("context.1")


def test_write_creates_parent_directories(tmp_path):
    target = tmp_path / "nested" / "dir" / "context.md"

    written = FileOutputSink(target, base_dir=tmp_path).write("# Project Context\n")

    assert written == str(target)
    assert target.read_text(encoding="utf-8") == "# Project Context\n"


def test_relative_path_lands_in_base_dir(tmp_path):
    written = FileOutputSink("out/context.md", base_dir=tmp_path).write("x")
    assert written == str(tmp_path / "out" / "context.md")


def test_write_chunks_numbers_from_one(tmp_path):
    sink = FileOutputSink(tmp_path / "context.xml", base_dir=tmp_path)

    written = sink.write_chunks(["first", "second"])

    assert written == [str(tmp_path / "context.1.xml"), str(tmp_path / "context.2.xml")]
    assert (tmp_path / "context.2.xml").read_text(encoding="utf-8") == "second"


@pytest.mark.parametrize("path", ["../escape.md", "a/../../escape.md", "."])
def test_paths_leaving_base_dir_are_rejected(tmp_path, path):
    base = tmp_path / "out"
    base.mkdir()

    with pytest.raises(OutputPathError):
        resolve_output_path(path, base)


def test_absolute_path_outside_base_dir_is_rejected(tmp_path):
    base = tmp_path / "out"
    with pytest.raises(OutputPathError):
        FileOutputSink(tmp_path / "elsewhere" / "context.md", base_dir=base)
    assert not (tmp_path / "elsewhere").exists()

import pytest

from context_weaver.domain.exceptions import ScanError
from context_weaver.infrastructure.fs_scanner import FileSystemScanner, detect_language
from context_weaver.services.assemble_context import extension_patterns

TS_ONLY = extension_patterns(["ts"])


def _write(root, rel, content="export const x = 1;\n"):
    target = root / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        target.write_bytes(content)
    else:
        target.write_text(content, encoding="utf-8")
    return target


@pytest.fixture
def project(tmp_path):
    _write(tmp_path, "src/index.ts")
    _write(tmp_path, "src/util/math.ts", "export function add(a: number, b: number) {\n  return a + b;\n}\n")
    _write(tmp_path, "src/styles.css", "body { margin: 0; }\n")
    _write(tmp_path, "node_modules/pkg/index.ts")
    _write(tmp_path, ".hidden/secret.ts")
    _write(tmp_path, "generated/out.ts")
    _write(tmp_path, ".gitignore", "generated/\n")
    return tmp_path


def _paths(files):
    return [f.path for f in files]


def test_scan_matches_extensions_and_sorts(project):
    files = FileSystemScanner().scan(project, TS_ONLY)
    assert _paths(files) == ["src/index.ts", "src/util/math.ts"]


def test_scan_honours_gitignore_and_defaults(project):
    paths = _paths(FileSystemScanner().scan(project, extension_patterns(["ts", "css"])))

    assert "generated/out.ts" not in paths
    assert not any(p.startswith("node_modules/") for p in paths)
    assert not any(p.startswith(".hidden/") for p in paths)
    assert "src/styles.css" in paths


def test_scan_applies_extra_ignore_patterns(project):
    files = FileSystemScanner().scan(project, TS_ONLY, ignore=["util/"])
    assert _paths(files) == ["src/index.ts"]


def test_scan_fills_language_and_tokens(project):
    math = next(f for f in FileSystemScanner().scan(project, TS_ONLY) if f.path.endswith("math.ts"))

    assert math.language == "typescript"
    assert math.tokens > 0
    assert math.token_info.lines == 4
    assert math.content.startswith("export function add")


def test_scan_skips_binary_files(tmp_path):
    _write(tmp_path, "ok.ts")
    _write(tmp_path, "blob.ts", b"\x00\x01\x02binary")

    assert _paths(FileSystemScanner().scan(tmp_path, TS_ONLY)) == ["ok.ts"]


def test_scan_skips_oversized_files(tmp_path):
    _write(tmp_path, "small.ts")
    _write(tmp_path, "large.ts", "x" * 3000)

    assert _paths(FileSystemScanner(max_file_size_kb=1).scan(tmp_path, TS_ONLY)) == ["small.ts"]


def test_scan_skips_undecodable_files(tmp_path):
    _write(tmp_path, "ok.ts")
    _write(tmp_path, "latin1.ts", "caf\xe9".encode("latin-1"))

    assert _paths(FileSystemScanner().scan(tmp_path, TS_ONLY)) == ["ok.ts"]


def test_scan_empty_directory(tmp_path):
    assert FileSystemScanner().scan(tmp_path, TS_ONLY) == []


def test_scan_missing_root_raises(tmp_path):
    with pytest.raises(ScanError):
        FileSystemScanner().scan(tmp_path / "missing", TS_ONLY)


def test_scan_file_root_raises(tmp_path):
    target = _write(tmp_path, "a.ts")
    with pytest.raises(ScanError):
        FileSystemScanner().scan(target, TS_ONLY)


@pytest.mark.parametrize(
    ("path", "language"),
    [
        ("src/a.ts", "typescript"),
        ("App.TSX", "tsx"),
        ("lib/x.js", "javascript"),
        ("tool.py", "python"),
        ("conf.yml", "yaml"),
        ("Makefile", "text"),
        ("weird.dir/README", "text"),
    ],
)
def test_detect_language(path, language):
    assert detect_language(path) == language


def test_extension_patterns():
    assert extension_patterns(["ts", ".js", " md "]) == ["**/*.ts", "**/*.js", "**/*.md"]

"""
Shared fixtures for undup tests.
Creates isolated source/target trees with controlled file contents.
"""
import os
import pytest
import sys
from pathlib import Path
from typing import Dict

# Add src/ to sys.path so 'undup' is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

# SHA-256 of b""
EMPTY_SHA256 = "E3B0C44298FC1C149AFBF4C8996FB92427AE41E4649B934CA495991B7852B855"


def write_file(path: Path, content: str) -> Path:
    """Creates parent directories as needed and writes `content`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def make_symlink(original: Path, link: Path) -> Path:
    link.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(original, link)
    return link


@pytest.fixture
def trees(tmp_path) -> Dict[str, Path]:
    """Empty `source` and `target` directories under one temp dir."""
    source = tmp_path / "source"
    target = tmp_path / "target"
    source.mkdir()
    target.mkdir()
    return {"root": tmp_path, "source": source, "target": target}


@pytest.fixture
def populated_trees(trees) -> Dict[str, Path]:
    """
    Source and target with a mix of situations:
    - target/file1.txt duplicates source/file1.txt
    - target/nested/copy.txt duplicates source/sub/file2.txt (different name)
    - target/unique.txt exists only in the target
    - source/only_source.txt exists only in the source
    """
    source, target = trees["source"], trees["target"]
    files = dict(trees)
    files["src_file1"] = write_file(source / "file1.txt", "content1")
    files["src_file2"] = write_file(source / "sub" / "file2.txt", "content2")
    files["src_only"] = write_file(source / "only_source.txt", "source only")
    files["tgt_file1"] = write_file(target / "file1.txt", "content1")
    files["tgt_copy"] = write_file(target / "nested" / "copy.txt", "content2")
    files["tgt_unique"] = write_file(target / "unique.txt", "target only")
    return files

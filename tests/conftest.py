"""
Shared fixtures: zip archives built on the fly.
"""

import zipfile
from pathlib import Path
from typing import Dict, Union

import pytest


def write_zip(
    path: Path,
    entries: Dict[str, Union[str, bytes]],
    compression: int = zipfile.ZIP_DEFLATED
) -> Path:
    """Write entries (in dict order) to a zip file and return its path."""
    with zipfile.ZipFile(path, 'w', compression=compression) as zf:
        for name, content in entries.items():
            if isinstance(content, str):
                content = content.encode('utf-8')
            zf.writestr(name, content)
    return path


@pytest.fixture
def make_zip(tmp_path):
    """Factory fixture: make_zip(entries, name='test.zip', compression=...)."""
    def _make(entries, name="test.zip", compression=zipfile.ZIP_DEFLATED):
        return write_zip(tmp_path / name, entries, compression)
    return _make


@pytest.fixture
def sample_zip(make_zip):
    """Archive with text entries, a directory and an empty file."""
    return make_zip({
        "docs/": b"",
        "docs/readme.txt": "hello world\nsearch me please\nbye\n",
        "src/main.py": "import os\n\ndef search():\n    return 'search'\n",
        "empty.txt": b"",
        "notes.md": "nothing to see here",
    })

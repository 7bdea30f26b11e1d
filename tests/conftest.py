import subprocess
import sys
from pathlib import Path

import pytest

# Allow `import markletpack` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _block_external_compiler(monkeypatch):
    """Tests must never spawn a real CoffeeScript compiler."""

    def _blocked(*_args, **_kwargs):
        raise AssertionError("external compiler started during tests")

    import markletpack.normalize as normalize

    monkeypatch.setattr(normalize.subprocess, "run", _blocked)


@pytest.fixture
def fake_coffee(monkeypatch):
    """Stand-in compiler: records its input and prints whatever `fake_coffee.output` holds."""
    import markletpack.normalize as normalize

    class _Fake:
        output = "var x;\n\nx = 1;\n"
        returncode = 0
        stderr = ""
        calls = []

        def __call__(self, cmd, **kwargs):
            self.calls.append((cmd, kwargs.get("input")))
            return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.output, stderr=self.stderr)

    fake = _Fake()
    fake.calls = []
    monkeypatch.setattr(normalize.subprocess, "run", fake)
    return fake


@pytest.fixture
def sample_doc(tmp_path: Path) -> Path:
    """The sample document next to an icon file, as they would sit in a real checkout."""
    src = tmp_path / "bookmarklets.txt"
    src.write_text((FIXTURES / "sample_bookmarklets.txt").read_text(encoding="utf-8"), encoding="utf-8")
    (tmp_path / "javascript.ico").write_bytes(b"\x00\x00\x01\x00\x01\x00\x10\x10")
    return src

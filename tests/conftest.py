"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and makes the ``reflstubs`` fixture package importable for live checks.
"""

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local pyreflect package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

FIXTURES = Path(__file__).parent / "fixtures"
if str(FIXTURES) not in sys.path:
    sys.path.insert(1, str(FIXTURES))

# Force reimport of pyreflect modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("pyreflect"):
        del sys.modules[module_name]

from pyreflect.engine import ReflectionEngine  # noqa: E402


@pytest.fixture
def fixtures_root() -> Path:
    """Directory holding the reflstubs source package."""
    return FIXTURES


@pytest.fixture
def engine() -> Iterator[ReflectionEngine]:
    """Default engine rooted at the fixture sources."""
    eng = ReflectionEngine.configure(search_paths=[FIXTURES])
    yield eng
    ReflectionEngine.reset()

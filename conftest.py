"""Root conftest.py - makes the local randqa package take precedence over any installed version."""

from __future__ import annotations

import sys
from pathlib import Path

# Put src/ first so `import randqa` resolves to this tree,
# even if another randqa is installed in the environment.
_src_root = str(Path(__file__).parent / "src")
if _src_root not in sys.path:
    sys.path.insert(0, _src_root)

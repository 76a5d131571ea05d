# Test configuration utilities.
# Ensures the repository root is on sys.path so that 'clawpod' can be imported
# when running pytest without installing the package, and keeps the debug log
# file sink out of the working tree during tests.
from __future__ import annotations

import os
from pathlib import Path
import sys


os.environ.setdefault("CLAWPOD_DEBUG_LOG", "")

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

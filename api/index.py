"""Vercel entrypoint serving the nutrition ledger stats and meal API.

The Python runtime imports ``app`` from this module. The source tree is not
installed there, so ``src`` goes on the import path before the ASGI app loads.
Settings come from the project environment variables (``SUPABASE_URL``,
``SUPABASE_SERVICE_KEY``, ``DEFAULT_TIMEZONE``).
"""

import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from nutrition_ledger.api.asgi import app  # noqa: E402

__all__ = ["app"]

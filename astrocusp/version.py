# astrocusp/version.py
from __future__ import annotations
import os

# Single place to bump the package version (overridable via env for CI/preview)
VERSION = os.getenv("ASTROCUSP_VERSION", "1.0.0")

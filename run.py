# -*- coding: utf-8 -*-
"""
LfsCompiler Launcher
Runs the command line tool from a source checkout:

    python run.py build --listing obj/MyMod.listing.json --sourceRoot .
    python run.py ingest --translation de.json --sourceRoot . --author nexus:someone
"""

import sys

# Ensure stdout/stderr use UTF-8 where possible; translations are rarely ASCII
try:
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    if hasattr(sys.stderr, "reconfigure"):
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")
except (AttributeError, OSError):
    pass

from localize_from_source.cli_main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())

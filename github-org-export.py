#!/usr/bin/env python3
"""
GitHub Org Export - Bulk-export repositories of a GitHub organization.

This tool starts one migration for all requested repositories (or one per
repository), polls GitHub until every migration has finished, and downloads
the resulting archives.

Copyright (c) 2025 Michele Tavella <meeghele@proton.me>
Licensed under the MIT License. See LICENSE file for details.

Author: Michele Tavella <meeghele@proton.me>
License: MIT
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from errors import EXIT_EXECUTION_ERROR
from export_orchestrator import ExportOrchestrator


def main() -> NoReturn:
    if __name__ != "__main__":
        sys.exit(EXIT_EXECUTION_ERROR)

    cfg = parse_arguments()
    orchestrator = ExportOrchestrator(cfg)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()

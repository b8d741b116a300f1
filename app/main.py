#!/usr/bin/env python3
"""
CBX MCP Exec Server - Entry Point

This is the main entry point for the MCP server when run from a checkout.
Installed copies use the `cbx-mcp-exec` console script instead.
"""

import sys
from pathlib import Path

# Add app directory to path for imports when running directly
APP_DIR = Path(__file__).parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from cbx_mcp_exec.cli import main


if __name__ == "__main__":
    sys.exit(main())

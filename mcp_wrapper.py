#!/usr/bin/env python3
"""
dufs MCP Wrapper
----------------
Entry point for MCP hosts that launch a script path instead of a console
command. Equivalent to ``dufs-mcp serve``; configuration comes from the
environment (DUFS_URL, MCP_MODE, ...).
"""

import sys

from dufs_mcp.cli import main

if __name__ == "__main__":
    sys.exit(main(["serve", *sys.argv[1:]]))

#!/usr/bin/env python3
"""
gitsyncer MCP server launcher.

Runs the tool server on stdio using configuration from GITSYNCER_* environment
variables or a .env file in the working directory.
"""

from gitsyncer.server import main


if __name__ == "__main__":
    main()

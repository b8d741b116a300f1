"""
CBX MCP Command Executor Server.

This MCP server exposes declaratively configured command-line tools
to LLMs, running every invocation as a sandboxed, bounded subprocess.
"""

__version__ = "0.1.0"

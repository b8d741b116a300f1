from cbx_mcp_exec.utils.logging import format_command_line, get_logger, setup_logging

__all__ = ["format_command_line", "get_logger", "setup_logging"]

# tools package for MCP server tools
# Modules in this package should expose `get_tools()` or `get_tools(settings: dict)` returning
# tool_name -> {"func", "title", "description"}. The server imports the modules listed under
# `servers.<key>.tools` in config.yaml and registers the returned callables as MCP tools.
__all__ = []

from core.config import get_config_dir, get_section, get_server_config
from core.database import get_database, open_database, set_database
from core.logging_config import setup_logging
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from importlib import import_module
from typing import Any, Callable
import argparse
import inspect
import logging
import os
import sys

logger = logging.getLogger(__name__)

TOOLS_PACKAGE = "tools"
TRANSPORTS = ("stdio", "sse", "streamable-http")

# Leading tool parameters with these names are filled in by the server and hidden from the tool schema.
INJECTED_PARAMS: dict[str, Callable[[], Any]] = {
    "db": get_database,
}


###################################################### Tool wrapping ######################################################

def make_wrapper(func: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a tool function so server-provided arguments are injected at call time.

    The wrapper advertises the remaining parameters (with their annotations and defaults) as its
    signature, which is what FastMCP turns into the tool's validated input schema.
    """
    orig_params = list(inspect.signature(func).parameters.values())
    injected = None
    if orig_params and orig_params[0].name in INJECTED_PARAMS:
        injected = INJECTED_PARAMS[orig_params[0].name]
        orig_params = orig_params[1:]
    wrapper_sig = inspect.Signature(parameters=orig_params)

    async def _wrapped(**call_kwargs):
        if injected is not None:
            result = func(injected(), **call_kwargs)
        else:
            result = func(**call_kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    _wrapped.__signature__ = wrapper_sig
    _wrapped.__name__ = getattr(func, "__name__", "tool").lstrip("_")
    _wrapped.__doc__ = func.__doc__
    return _wrapped


def load_tool_mapping(module_name: str, settings: dict[str, Any]) -> dict[str, Any]:
    """Import `tools.<module_name>` and return its `get_tools()` mapping.

    `get_tools` may accept the module's config section (the top-level config key of the same name).
    """
    mod = import_module(f"{TOOLS_PACKAGE}.{module_name}")
    logger.info(f"Imported tools module: {mod.__name__}")
    if not hasattr(mod, "get_tools"):
        logger.warning(f"Tools module {mod.__name__} has no get_tools(); skipping")
        return {}
    if inspect.signature(mod.get_tools).parameters:
        return mod.get_tools(settings)
    return mod.get_tools()


def register_tools(mcp: FastMCP, module_names: list[str]) -> list[str]:
    """Register every tool of the given modules on `mcp`; return the registered tool names.

    A module that fails to import, or a tool that fails to register, is logged and skipped.
    """
    registered_tool_names: list[str] = []
    for module_name in module_names:
        try:
            mapping = load_tool_mapping(module_name, get_section(module_name))
        except Exception:
            logger.exception(f"Failed to load tools from module {TOOLS_PACKAGE}.{module_name}")
            continue

        # mapping: tool_name -> { 'func': callable, 'title': str, 'description': str } or a bare callable
        for tool_name, meta in mapping.items():
            if isinstance(meta, dict):
                func = meta.get("func")
                title = meta.get("title")
                description = meta.get("description")
            else:
                func, title, description = meta, None, None

            if not callable(func):
                logger.warning(f"Tool {tool_name} in {module_name} did not provide a callable; skipping")
                continue

            try:
                mcp.add_tool(make_wrapper(func), name=tool_name, title=title, description=description)
                logger.info(f"Added tool via add_tool: {tool_name} (title={title}) from {module_name}")
                registered_tool_names.append(tool_name)
            except Exception:
                logger.exception(f"Failed to register tool {tool_name} from {module_name}")
    return registered_tool_names


###################################################### Server construction ######################################################

def init_employee_database() -> None:
    settings = get_section("employee")
    path = str(settings.get("database", ":memory:"))
    if path != ":memory:" and not os.path.isabs(path):
        path = os.path.join(get_config_dir(), path)
    set_database(open_database(path, seed=bool(settings.get("seed_sample_data", True))))
    logger.info(f"Employee database ready at {path}")


SERVER_SETUP: dict[str, Callable[[], None]] = {
    "employee": init_employee_database,
}


def create_server(server_key: str) -> FastMCP:
    """Build the FastMCP instance declared under `servers.<server_key>` in config.yaml."""
    cfg = get_server_config(server_key)

    setup = SERVER_SETUP.get(server_key)
    if setup is not None:
        setup()

    mcp = FastMCP(cfg.get("name", server_key), instructions=cfg.get("instructions"))
    logger.info("MCP server instance '%s' created with instructions: %s", mcp.name, bool(cfg.get("instructions")))

    logger.info("Loading MCP tools...")
    registered = register_tools(mcp, list(cfg.get("tools") or []))
    logger.info(f"Total tools registered: {len(registered)} , tool names: {registered}")
    return mcp


###################################################### Startup ######################################################

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run one of the MCP tool servers declared in config.yaml")
    p.add_argument("server", help="Server key under `servers` in config.yaml (e.g. screenshot, employee)")
    p.add_argument("--transport", choices=TRANSPORTS, default="stdio", help="MCP transport (default: stdio)")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    try:
        setup_logging()
    except (FileNotFoundError, ValueError) as e:
        print(f"Cannot load configuration: {e}", file=sys.stderr)
        return 1
    logger.info("MCP server bootstrap starting.")

    try:
        mcp = create_server(args.server)
    except Exception:
        logger.exception(f"Failed to create MCP server '{args.server}'")
        return 1

    logger.info(f"Starting MCP server '{args.server}' on {args.transport}...")
    try:
        mcp.run(transport=args.transport)
        logger.info("MCP server shut down.")
    except KeyboardInterrupt:
        logger.info("Server shutdown requested.")
    except Exception:
        logger.exception("Unhandled exception running MCP server")
        print("Unhandled exception occurred. See logs/ for details.", file=sys.stderr)
        return -1
    return 0


def run_screenshot_server() -> None:
    sys.exit(main(["screenshot", *sys.argv[1:]]))


def run_employee_server() -> None:
    sys.exit(main(["employee", *sys.argv[1:]]))


if __name__ == "__main__":
    sys.exit(main())

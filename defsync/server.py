"""MCP server exposing definitions synchronization as tools."""

import logging
import sys
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from .config import GitConfig, load_configuration, validate_configuration
from .errors import create_error_response
from .git_sync import DefinitionsSynchronizer, GitSyncResult, suggested_action


def setup_logging(config: GitConfig) -> None:
    """Setup logging configuration with structured operation prefixes."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            if getattr(record, 'operation', None):
                record.msg = f"[{record.operation}] {record.msg}"
            return super().format(record)

    # MCP uses stdout for the stdio transport, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )

    formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    for logger_name in ('defsync.init', 'defsync.git_sync', 'defsync.error_handler'):
        logger = logging.getLogger(logger_name)
        logger.setLevel(getattr(logging, config.log_level))
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.propagate = False


def result_to_response(result: GitSyncResult) -> Dict[str, Any]:
    """Convert a GitSyncResult into the dictionary returned by a tool."""
    if result.success:
        return result.to_dict()

    response = create_error_response(result.error, context={'operation': result.operation}).to_dict()
    response["success"] = False
    response["suggested_action"] = suggested_action(result.error.kind).value
    return response


def register_tools(server: FastMCP, synchronizer: DefinitionsSynchronizer) -> None:
    """Register MCP tools with the server instance."""

    @server.tool()
    def download_definitions() -> dict:
        """
        Make sure the local definitions repository exists, cloning it if needed.

        An existing repository is left as it is; use update_definitions to
        fetch new remote state.
        """
        return result_to_response(synchronizer.download())

    @server.tool()
    def update_definitions() -> dict:
        """
        Fetch the tracked branch from the remote and bring the local branch up to date.

        Failures with suggested_action "retry" are usually transient (network).
        """
        return result_to_response(synchronizer.update())

    @server.tool()
    def set_definitions_version(commit_hash: str) -> dict:
        """
        Pin the definitions to a specific commit (HEAD becomes detached).

        Args:
            commit_hash: Full commit hash (40 hex characters, 64 for SHA-256 repositories)
        """
        return result_to_response(synchronizer.set_version(commit_hash))

    @server.tool()
    def set_definitions_version_to_latest() -> dict:
        """Check out the tip of the main branch (HEAD attached to the branch)."""
        return result_to_response(synchronizer.set_version_to_latest())

    @server.tool()
    def definitions_status() -> dict:
        """Report whether the local repository exists and where HEAD points. Never clones."""
        return result_to_response(synchronizer.get_repository_status())

    logging.getLogger('defsync.init').info("MCP tools registered successfully")


def initialize_server() -> FastMCP:
    """Initialize MCP server with stdio transport."""
    config = load_configuration()
    setup_logging(config)
    init_logger = logging.getLogger('defsync.init')

    validation_issues = validate_configuration(config)
    for issue in validation_issues:
        if issue.startswith("ERROR:"):
            init_logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            init_logger.warning(issue[9:])

    error_count = sum(1 for issue in validation_issues if issue.startswith("ERROR:"))
    if error_count > 0:
        raise RuntimeError(f"Server startup failed due to {error_count} configuration error(s)")

    init_logger.info(
        f"Configuration loaded: {config.repository_url} -> {config.repository_local_dir} "
        f"(remote '{config.remote_name}', branch '{config.remote_branch}')"
    )

    synchronizer = DefinitionsSynchronizer(config)

    server = FastMCP("defsync", log_level=config.log_level)
    register_tools(server, synchronizer)

    init_logger.info("defsync MCP server initialized successfully")
    return server


def main():
    """Main entry point for the defsync MCP server."""
    try:
        server = initialize_server()
    except (ValueError, RuntimeError) as e:
        logging.basicConfig(level=logging.ERROR)
        logging.getLogger('defsync.init').critical(f"Server initialization failed: {e}")
        sys.exit(1)

    logging.getLogger('defsync.init').info("Starting defsync MCP server (stdio)")
    server.run()


if __name__ == "__main__":
    main()

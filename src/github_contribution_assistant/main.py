from logging import Logger
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import configure_logging, get_logger

from github_contribution_assistant.clients.github import GitHubRepositoryClient
from github_contribution_assistant.sampling.handler import get_sampling_handler
from github_contribution_assistant.servers.assistant import AssistantServer
from github_contribution_assistant.snapshots import RepositorySnapshotBuilder

logger: Logger = get_logger(name=__name__)


def new_mcp_server() -> FastMCP[None]:
    """Build the MCP server. Raises if no GitHub token is configured."""

    mcp: FastMCP[None] = FastMCP[None](
        name="GitHub Contribution Assistant",
        instructions="Index a GitHub repository, then ask questions about its code, its issues, and how to contribute to it.",
        sampling_handler=get_sampling_handler(),
    )

    mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

    builder = RepositorySnapshotBuilder(github_client=GitHubRepositoryClient(logger=logger), logger=logger)

    assistant_server: AssistantServer = AssistantServer(builder=builder, logger=logger)
    _ = assistant_server.register_tools(fastmcp=mcp)

    return mcp


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), default="INFO", help="The log level")
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"], log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]):
    configure_logging(level=log_level)

    new_mcp_server().run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()

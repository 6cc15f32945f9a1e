"""
CLI entry point for Compliance Tools.

Runs the MCP server, or scores risks directly from the command line.
"""

import json
import logging
import sys
from typing import Any

import click

from compliance_tools import __version__
from compliance_tools.config import ComplianceToolsConfig
from compliance_tools.risk import InvalidEnumError, RiskItem, inherent_score, score_assessment

logger = logging.getLogger("compliance_tools")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging for execution visibility."""
    if debug:
        level, fmt = logging.DEBUG, "%(asctime)s %(name)s: %(message)s"
    elif verbose:
        level, fmt = logging.INFO, "%(message)s"
    else:
        level, fmt = logging.WARNING, "%(levelname)s: %(message)s"
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)
    logging.getLogger("compliance_tools").setLevel(level)


def _load_json(value: str) -> Any:
    """Accept a JSON string or a path to a JSON file."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        with open(value) as f:
            return json.load(f)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Compliance Tools - licensing records, risk scoring and AI compliance checks."""
    pass


@cli.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http", "sse"]),
    default="stdio",
    help="MCP transport (default: stdio)",
)
@click.option("--host", default="127.0.0.1", help="Bind host for http/sse transports")
@click.option("--port", type=int, default=8000, help="Bind port for http/sse transports")
@click.option("--verbose", "-v", is_flag=True, help="Show execution details")
@click.option("--debug", is_flag=True, help="Show debug logging")
def serve(transport: str, host: str, port: int, verbose: bool, debug: bool) -> None:
    """Run the compliance tools MCP server."""
    from fastmcp import FastMCP

    from compliance_tools.credentials import CREDENTIAL_SPECS, CredentialStoreAdapter
    from compliance_tools.tools import register_all_tools

    setup_logging(verbose=verbose, debug=debug)

    try:
        config = ComplianceToolsConfig.from_env()
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    credentials = CredentialStoreAdapter(CREDENTIAL_SPECS)
    missing = credentials.missing_required()
    if missing:
        click.echo(f"Missing required credentials: {', '.join(missing)}", err=True)
        for name in missing:
            click.echo(credentials.help_text(name), err=True)
        sys.exit(1)

    mcp = FastMCP("compliance-tools")
    registry = register_all_tools(mcp, credentials=credentials, config=config)
    logger.info(
        "Loaded %d licenses, %d policies, %d regulatory updates",
        len(registry.licenses),
        len(registry.policies),
        len(registry.regulatory_updates),
    )

    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport=transport, host=host, port=port)


@cli.command()
@click.option(
    "--likelihood",
    "-l",
    type=click.Choice(["Low", "Medium", "High"], case_sensitive=False),
    required=True,
    help="Likelihood of the risk occurring",
)
@click.option(
    "--impact",
    "-i",
    type=click.Choice(["Low", "Medium", "High"], case_sensitive=False),
    required=True,
    help="Impact if the risk occurs",
)
@click.option(
    "--control",
    "-c",
    "controls",
    multiple=True,
    help="Mitigation control in place (repeatable)",
)
@click.option("--description", "-d", default="", help="Risk description")
def score(likelihood: str, impact: str, controls: tuple[str, ...], description: str) -> None:
    """Score one risk and print its inherent and residual ratings as JSON."""
    item = RiskItem(
        description=description,
        likelihood=likelihood,
        impact=impact,
        mitigation_controls=controls,
    )
    output = item.to_dict()
    output["inherent_score"] = inherent_score(item.likelihood, item.impact)
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("risks")
@click.option("--quiet", "-q", is_flag=True, help="Only print the overall rating")
def assess(risks: str, quiet: bool) -> None:
    """Score a JSON list of risks (string or file path) and print the overall rating."""
    try:
        entries = _load_json(risks)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error reading risks: {e}", err=True)
        sys.exit(1)

    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        click.echo("Error: risks must be a JSON array of objects", err=True)
        sys.exit(1)

    items = []
    for i, entry in enumerate(entries):
        try:
            items.append(RiskItem.from_dict(entry))
        except InvalidEnumError as e:
            click.echo(f"Error: risk #{i + 1}: {e}", err=True)
            sys.exit(2)
        except ValueError as e:
            click.echo(f"Error: risk #{i + 1}: {e}", err=True)
            sys.exit(1)

    overall = score_assessment(items)
    if quiet:
        click.echo(overall.value)
        return
    click.echo(
        json.dumps(
            {
                "items": [item.to_dict() for item in items],
                "overall_risk_rating": overall.value,
            },
            indent=2,
        )
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

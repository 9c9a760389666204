#!/usr/bin/env python3
"""
Update stack CLI command.

Every option falls back to the environment variable the GitHub Actions
runner sets for the matching action input.
"""

import sys
import traceback
from typing import Optional, Tuple

import click

from .. import reporting
from ..cloudformation import StackManager
from ..config import CONFIG_ENV_VAR, load_config
from ..inputs import build_change_set_request


class MultilineList(click.ParamType):
    """A list input given one item per line."""

    name = "multiline"
    envvar_list_splitter = "\n"

    def convert(self, value, param, ctx):
        return value.strip() if isinstance(value, str) else value


MULTILINE = MultilineList()


def _lines(values: Tuple[str, ...]) -> list:
    lines = []
    for value in values:
        lines.extend(line.strip() for line in value.splitlines())
    return [line for line in lines if line]


@click.command(name="update-stack")
@click.option(
    "--stack-name", "-s", envvar="INPUT_STACK-NAME", help="CloudFormation stack name"
)
@click.option(
    "--parameter-overrides",
    "-p",
    type=MULTILINE,
    multiple=True,
    envvar="INPUT_PARAMETER-OVERRIDES",
    help="Parameter override as KEY=VALUE (repeatable, or one per line)",
)
@click.option(
    "--capabilities",
    "-c",
    type=MULTILINE,
    multiple=True,
    envvar="INPUT_CAPABILITIES",
    help="Capability to acknowledge, e.g. CAPABILITY_IAM (repeatable)",
)
@click.option("--role-arn", envvar="INPUT_ROLE-ARN", help="IAM role CloudFormation assumes")
@click.option("--region", envvar="AWS_REGION", help="AWS region")
@click.option("--profile", envvar="AWS_PROFILE", help="AWS profile to use")
@click.option(
    "--config",
    "config_path",
    envvar=CONFIG_ENV_VAR,
    type=click.Path(dir_okay=False),
    help="YAML file overriding wait bounds",
)
@click.option(
    "--verbose", "-v", is_flag=True, envvar="RUNNER_DEBUG", help="Emit debug messages"
)
def main(
    stack_name: Optional[str],
    parameter_overrides: Tuple[str, ...],
    capabilities: Tuple[str, ...],
    role_arn: Optional[str],
    region: Optional[str],
    profile: Optional[str],
    config_path: Optional[str],
    verbose: bool,
) -> None:
    """Update an existing CloudFormation stack through a change-set."""
    reporting.configure_logging(verbose)

    try:
        request = build_change_set_request(
            stack_name,
            parameter_overrides=_lines(parameter_overrides),
            capabilities=_lines(capabilities),
            role_arn=role_arn,
        )
        config = load_config(config_path, region=region, profile=profile)

        manager = StackManager(config=config)
        manager.update_stack(request)

        reporting.info("Cloudformation stack update is complete")

    except Exception as e:
        reporting.set_failed(str(e))
        reporting.debug(traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    main()

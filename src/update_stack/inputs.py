"""
Parsing and validation of the action inputs into a change-set request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import InputValidationError

CHANGE_SET_SUFFIX = "-changeset"
ROLE_ARN_PREFIX = "arn:aws:iam:"
INVALID_ARN_MESSAGE = "Input role-arn is an invalid arn format"


class Capability(str, Enum):
    """Capabilities CloudFormation may require to be acknowledged."""

    CAPABILITY_IAM = "CAPABILITY_IAM"
    CAPABILITY_NAMED_IAM = "CAPABILITY_NAMED_IAM"
    CAPABILITY_AUTO_EXPAND = "CAPABILITY_AUTO_EXPAND"


class RoleArn(str):
    """An IAM role ARN that passed format validation."""


@dataclass(frozen=True)
class Parameter:
    """A single stack parameter override."""

    key: str
    value: str

    def to_api(self) -> Dict[str, str]:
        return {"ParameterKey": self.key, "ParameterValue": self.value}


@dataclass(frozen=True)
class ChangeSetRequest:
    """Everything needed to create the change-set for one run."""

    stack_name: str
    capabilities: Tuple[Capability, ...] = ()
    parameters: Optional[Tuple[Parameter, ...]] = None
    role_arn: Optional[RoleArn] = None

    @property
    def change_set_name(self) -> str:
        return f"{self.stack_name}{CHANGE_SET_SUFFIX}"

    @property
    def use_previous_template(self) -> bool:
        return True

    def to_api_params(self) -> Dict[str, Any]:
        """Build the keyword arguments for ``create_change_set``."""
        params: Dict[str, Any] = {
            "ChangeSetName": self.change_set_name,
            "StackName": self.stack_name,
            "UsePreviousTemplate": self.use_previous_template,
        }
        if self.capabilities:
            params["Capabilities"] = [c.value for c in self.capabilities]
        if self.parameters:
            params["Parameters"] = [p.to_api() for p in self.parameters]
        if self.role_arn:
            params["RoleARN"] = str(self.role_arn)
        return params


def _non_blank(values: Iterable[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


def parse_parameters(parameter_overrides: Iterable[str]) -> List[Parameter]:
    """
    Parse ``KEY=VALUE`` tokens into parameters.

    The token is split on the first ``=`` so values may themselves contain
    ``=``. Whitespace around the key and the value is dropped. Order and
    duplicate keys are preserved.

    Raises:
        InputValidationError: if a token has no ``=`` or an empty key
    """
    parameters = []
    for token in _non_blank(parameter_overrides):
        key, sep, value = token.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InputValidationError(
                f"Input parameter-overrides has an invalid entry '{token}', "
                "expected KEY=VALUE"
            )
        parameters.append(Parameter(key=key, value=value.strip()))
    return parameters


def validate_arn(arn: Any) -> RoleArn:
    """
    Check that ``arn`` looks like an IAM ARN and return it unchanged.

    Only the ``arn:aws:iam:`` prefix and a minimum of six colon separated
    segments are checked; the role is not resolved.
    """
    if (
        isinstance(arn, str)
        and arn.startswith(ROLE_ARN_PREFIX)
        and len(arn.split(":")) >= 6
    ):
        return RoleArn(arn)

    raise InputValidationError(INVALID_ARN_MESSAGE)


def parse_capabilities(capabilities: Iterable[str]) -> List[Capability]:
    """Convert capability tokens to ``Capability`` members, keeping order."""
    parsed = []
    for token in _non_blank(capabilities):
        try:
            parsed.append(Capability(token))
        except ValueError:
            allowed = ", ".join(c.value for c in Capability)
            raise InputValidationError(
                f"Input capabilities has an unknown value '{token}' "
                f"(allowed: {allowed})"
            ) from None
    return parsed


def build_change_set_request(
    stack_name: Optional[str],
    parameter_overrides: Optional[Iterable[str]] = None,
    capabilities: Optional[Iterable[str]] = None,
    role_arn: Optional[str] = None,
) -> ChangeSetRequest:
    """
    Build a validated change-set request from raw action inputs.

    Args:
        stack_name: Target stack name
        parameter_overrides: ``KEY=VALUE`` lines
        capabilities: Capability tokens
        role_arn: Optional execution role ARN

    Returns:
        ChangeSetRequest ready to be sent
    """
    if not stack_name or not stack_name.strip():
        raise InputValidationError("Input required and not supplied: stack-name")

    parameters = parse_parameters(parameter_overrides or [])
    role_arn = (role_arn or "").strip()

    return ChangeSetRequest(
        stack_name=stack_name.strip(),
        capabilities=tuple(parse_capabilities(capabilities or [])),
        parameters=tuple(parameters) if parameters else None,
        role_arn=validate_arn(role_arn) if role_arn else None,
    )

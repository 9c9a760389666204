"""
CloudFormation change-set update operations.
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import WaiterError

from ..config import UpdateConfig, WaitSettings
from ..errors import ChangeSetFailedError, StackUpdateFailedError, WaitTimeoutError
from ..inputs import ChangeSetRequest
from .diagnostics import StackDiagnostics

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_REASON = "Max attempts exceeded"


class StackManager:
    """Update an existing CloudFormation stack through a change-set."""

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        config: Optional[UpdateConfig] = None,
    ):
        """
        Initialize stack manager.

        Args:
            region: AWS region (resolved by boto3 when omitted)
            profile: AWS profile to use
            config: Polling bounds and session defaults
        """
        self.config = config or UpdateConfig()
        self.region = region or self.config.region
        self.profile = profile or self.config.profile

        session_args: Dict[str, Any] = {}
        if self.region:
            session_args["region_name"] = self.region
        if self.profile:
            session_args["profile_name"] = self.profile

        session = boto3.Session(**session_args)
        self.cloudformation = session.client("cloudformation")

    def create_change_set(self, request: ChangeSetRequest) -> Dict[str, Any]:
        """Submit the change-set. Service rejections propagate as ``ClientError``."""
        logger.info(
            f"Creating CloudFormation Change Set {request.change_set_name} "
            f"for stack {request.stack_name}"
        )
        return self.cloudformation.create_change_set(**request.to_api_params())

    def wait_for_change_set(self, request: ChangeSetRequest) -> None:
        """Block until the change-set is created."""
        logger.info("Waiting for CloudFormation changeset to create ...")
        settings = self.config.change_set_wait

        try:
            self._wait(
                "change_set_create_complete",
                settings,
                ChangeSetName=request.change_set_name,
                StackName=request.stack_name,
            )
        except WaiterError as e:
            if _is_timeout(e):
                raise WaitTimeoutError(
                    f"Change set {request.change_set_name} did not finish creating "
                    f"within {settings.max_wait} seconds"
                ) from e
            raise ChangeSetFailedError(
                f"Change set {request.change_set_name} failed to create: "
                f"{_describe_failure(e, 'Status')}"
            ) from e

    def execute_change_set(self, request: ChangeSetRequest) -> Dict[str, Any]:
        logger.info(f"Executing CloudFormation changeset {request.change_set_name}")
        return self.cloudformation.execute_change_set(
            ChangeSetName=request.change_set_name,
            StackName=request.stack_name,
        )

    def wait_for_stack_update(self, stack_name: str) -> None:
        """Block until the stack reaches UPDATE_COMPLETE."""
        logger.info(
            f"Waiting for CloudFormation stack {stack_name} to reach update complete ..."
        )
        settings = self.config.stack_wait

        try:
            self._wait("stack_update_complete", settings, StackName=stack_name)
        except WaiterError as e:
            self._log_failed_events(stack_name)
            if _is_timeout(e):
                raise WaitTimeoutError(
                    f"Stack {stack_name} did not reach UPDATE_COMPLETE "
                    f"within {settings.max_wait} seconds"
                ) from e
            raise StackUpdateFailedError(
                f"Stack {stack_name} failed to update: "
                f"{_describe_failure(e, 'StackStatus')}"
            ) from e

    def update_stack(self, request: ChangeSetRequest) -> None:
        """Create, wait for, and execute the change-set, then wait for the stack."""
        self.create_change_set(request)
        self.wait_for_change_set(request)
        self.execute_change_set(request)
        self.wait_for_stack_update(request.stack_name)

    def _wait(self, waiter_name: str, settings: WaitSettings, **kwargs: Any) -> None:
        waiter = self.cloudformation.get_waiter(waiter_name)
        waiter.wait(WaiterConfig=settings.waiter_config(), **kwargs)

    def _log_failed_events(self, stack_name: str) -> None:
        try:
            events = StackDiagnostics(self).failed_events(stack_name)
        except Exception as e:
            logger.debug(f"Could not retrieve stack events: {e}")
            return

        for event in events:
            logger.warning(
                f"Resource {event['logical_id']} ({event['resource_type']}) "
                f"{event['status']}: {event['reason']}"
            )


def _is_timeout(error: WaiterError) -> bool:
    return MAX_ATTEMPTS_REASON in str(error.kwargs.get("reason", ""))


def _describe_failure(error: WaiterError, status_key: str) -> str:
    """Pull the status and reason out of the waiter's last response."""
    response = error.last_response or {}

    if "Error" in response:
        return str(response["Error"].get("Message", error))

    if status_key == "StackStatus":
        stacks = response.get("Stacks") or [{}]
        response = stacks[0]

    status = response.get(status_key)
    reason = response.get("StatusReason") or response.get("StackStatusReason")
    if status and reason:
        return f"{status} - {reason}"
    return str(status or error)

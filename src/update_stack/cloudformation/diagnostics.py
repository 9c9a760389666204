"""
CloudFormation stack update diagnostics.
"""

from typing import Any, Dict, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .stack_manager import StackManager

UPDATE_STARTED = "UPDATE_IN_PROGRESS"


class StackDiagnostics:
    """Explain why a stack update did not complete."""

    def __init__(self, stack_manager: "StackManager"):
        """Initialize diagnostics with the stack manager's CloudFormation client."""
        self.cloudformation = stack_manager.cloudformation

    def get_update_events(self, stack_name: str, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Get stack events for the most recent update, newest first.

        Events are read until the stack's own UPDATE_IN_PROGRESS event, which
        marks the start of the update.
        """
        events = []
        paginator = self.cloudformation.get_paginator("describe_stack_events")

        for page in paginator.paginate(StackName=stack_name):
            for event in page["StackEvents"]:
                events.append(event)

                if (
                    event.get("LogicalResourceId") == stack_name
                    and event.get("ResourceStatus") == UPDATE_STARTED
                ):
                    return events

                if len(events) >= limit:
                    return events

        return events

    def failed_events(self, stack_name: str) -> List[Dict[str, Any]]:
        """Summarise the failed resource events of the latest update, oldest first."""
        failures = []

        for event in self.get_update_events(stack_name):
            if "FAILED" not in event.get("ResourceStatus", ""):
                continue
            failures.append({
                "logical_id": event["LogicalResourceId"],
                "resource_type": event.get("ResourceType", "Unknown"),
                "status": event["ResourceStatus"],
                "reason": event.get("ResourceStatusReason", "No reason provided"),
                "timestamp": str(event.get("Timestamp", "")),
            })

        failures.reverse()
        return failures

"""
Tests for CloudFormation change-set update functionality.
"""

from unittest.mock import Mock, call, patch

import pytest
from botocore.exceptions import ClientError, WaiterError

from update_stack.cloudformation.stack_manager import StackManager
from update_stack.config import UpdateConfig, WaitSettings
from update_stack.errors import (
    ChangeSetFailedError,
    StackUpdateFailedError,
    WaitTimeoutError,
)
from update_stack.inputs import build_change_set_request


class TestStackManager:
    """Test CloudFormation change-set updates."""

    def create_manager(self, config=None):
        """Create a test manager with a mocked CloudFormation client."""
        with patch("boto3.Session"):
            manager = StackManager(config=config)

            manager.cloudformation = Mock()
            manager.change_set_waiter = Mock()
            manager.stack_waiter = Mock()

            waiters = {
                "change_set_create_complete": manager.change_set_waiter,
                "stack_update_complete": manager.stack_waiter,
            }
            manager.cloudformation.attach_mock(manager.change_set_waiter, "change_set_waiter")
            manager.cloudformation.attach_mock(manager.stack_waiter, "stack_waiter")
            manager.cloudformation.get_waiter.side_effect = lambda name: waiters[name]

            return manager

    def create_request(self, **kwargs):
        return build_change_set_request("my-stack", **kwargs)

    def test_session_uses_region_and_profile(self) -> None:
        """Test the boto3 session picks up region and profile."""
        with patch("boto3.Session") as session_mock:
            StackManager(region="eu-west-1", profile="ci")

        session_mock.assert_called_once_with(region_name="eu-west-1", profile_name="ci")
        session_mock.return_value.client.assert_called_once_with("cloudformation")

    def test_session_defaults_to_boto3_resolution(self) -> None:
        with patch("boto3.Session") as session_mock:
            StackManager()

        session_mock.assert_called_once_with()

    def test_update_stack_with_parameters(self) -> None:
        """Test the full create, wait, execute, wait sequence."""
        manager = self.create_manager()
        request = self.create_request(
            parameter_overrides=["UUID=0F54400F-937E-46B9-8C4C-5D94833C9FB8", "Name=test"],
            capabilities=["CAPABILITY_IAM"],
            role_arn="arn:aws:iam::111111111111:role/role-name",
        )

        manager.update_stack(request)

        assert manager.cloudformation.mock_calls == [
            call.create_change_set(
                ChangeSetName="my-stack-changeset",
                StackName="my-stack",
                UsePreviousTemplate=True,
                RoleARN="arn:aws:iam::111111111111:role/role-name",
                Capabilities=["CAPABILITY_IAM"],
                Parameters=[
                    {
                        "ParameterKey": "UUID",
                        "ParameterValue": "0F54400F-937E-46B9-8C4C-5D94833C9FB8",
                    },
                    {"ParameterKey": "Name", "ParameterValue": "test"},
                ],
            ),
            call.get_waiter("change_set_create_complete"),
            call.change_set_waiter.wait(
                WaiterConfig={"Delay": 10, "MaxAttempts": 180},
                ChangeSetName="my-stack-changeset",
                StackName="my-stack",
            ),
            call.execute_change_set(
                ChangeSetName="my-stack-changeset", StackName="my-stack"
            ),
            call.get_waiter("stack_update_complete"),
            call.stack_waiter.wait(
                WaiterConfig={"Delay": 10, "MaxAttempts": 4320},
                StackName="my-stack",
            ),
        ]

    def test_update_stack_with_no_parameters(self) -> None:
        manager = self.create_manager()

        manager.update_stack(self.create_request())

        manager.cloudformation.create_change_set.assert_called_once_with(
            ChangeSetName="my-stack-changeset",
            StackName="my-stack",
            UsePreviousTemplate=True,
        )
        manager.cloudformation.execute_change_set.assert_called_once_with(
            ChangeSetName="my-stack-changeset", StackName="my-stack"
        )
        manager.stack_waiter.wait.assert_called_once()

    def test_wait_bounds_from_config(self) -> None:
        """Test custom wait settings reach the waiter."""
        config = UpdateConfig(
            change_set_wait=WaitSettings(max_wait=60, min_delay=5),
            stack_wait=WaitSettings(max_wait=100, min_delay=30),
        )
        manager = self.create_manager(config=config)

        manager.update_stack(self.create_request())

        assert manager.change_set_waiter.wait.call_args[1]["WaiterConfig"] == {
            "Delay": 5,
            "MaxAttempts": 12,
        }
        assert manager.stack_waiter.wait.call_args[1]["WaiterConfig"] == {
            "Delay": 30,
            "MaxAttempts": 4,
        }

    def test_create_rejection_propagates(self) -> None:
        """Test service rejections are not reinterpreted."""
        manager = self.create_manager()
        error = ClientError(
            {"Error": {"Code": "ValidationError", "Message": "Stack [my-stack] does not exist"}},
            "CreateChangeSet",
        )
        manager.cloudformation.create_change_set.side_effect = error

        with pytest.raises(ClientError) as exc_info:
            manager.update_stack(self.create_request())

        assert exc_info.value is error
        manager.cloudformation.get_waiter.assert_not_called()
        manager.cloudformation.execute_change_set.assert_not_called()

    def test_change_set_failure(self) -> None:
        """Test a FAILED change-set aborts before execution."""
        manager = self.create_manager()
        manager.change_set_waiter.wait.side_effect = WaiterError(
            name="ChangeSetCreateComplete",
            reason="Waiter encountered a terminal failure state: For expression \"Status\" we matched expected path: \"FAILED\"",
            last_response={
                "Status": "FAILED",
                "StatusReason": "The submitted information didn't contain changes.",
            },
        )

        with pytest.raises(ChangeSetFailedError) as exc_info:
            manager.update_stack(self.create_request())

        assert "my-stack-changeset" in str(exc_info.value)
        assert "didn't contain changes" in str(exc_info.value)
        manager.cloudformation.execute_change_set.assert_not_called()

    def test_change_set_timeout(self) -> None:
        manager = self.create_manager()
        manager.change_set_waiter.wait.side_effect = WaiterError(
            name="ChangeSetCreateComplete",
            reason="Max attempts exceeded",
            last_response={"Status": "CREATE_PENDING"},
        )

        with pytest.raises(WaitTimeoutError, match="1800 seconds"):
            manager.update_stack(self.create_request())

        manager.cloudformation.execute_change_set.assert_not_called()

    def test_stack_update_failure(self) -> None:
        """Test a rolled back stack is reported with its status."""
        manager = self.create_manager()
        manager.stack_waiter.wait.side_effect = WaiterError(
            name="StackUpdateComplete",
            reason="Waiter encountered a terminal failure state",
            last_response={
                "Stacks": [
                    {
                        "StackName": "my-stack",
                        "StackStatus": "UPDATE_ROLLBACK_COMPLETE",
                        "StackStatusReason": "Resource update cancelled",
                    }
                ]
            },
        )
        manager.cloudformation.get_paginator.return_value.paginate.return_value = [
            {
                "StackEvents": [
                    {
                        "LogicalResourceId": "MyFunction",
                        "ResourceType": "AWS::Lambda::Function",
                        "ResourceStatus": "UPDATE_FAILED",
                        "ResourceStatusReason": "AccessDenied",
                    },
                    {
                        "LogicalResourceId": "my-stack",
                        "ResourceType": "AWS::CloudFormation::Stack",
                        "ResourceStatus": "UPDATE_IN_PROGRESS",
                    },
                ]
            }
        ]

        with patch("update_stack.cloudformation.stack_manager.logger") as logger_mock:
            with pytest.raises(StackUpdateFailedError) as exc_info:
                manager.update_stack(self.create_request())

        assert "UPDATE_ROLLBACK_COMPLETE - Resource update cancelled" in str(exc_info.value)
        logger_mock.warning.assert_called_once()
        assert "MyFunction" in logger_mock.warning.call_args[0][0]

    def test_stack_update_timeout(self) -> None:
        manager = self.create_manager()
        manager.stack_waiter.wait.side_effect = WaiterError(
            name="StackUpdateComplete",
            reason="Max attempts exceeded",
            last_response={"Stacks": [{"StackStatus": "UPDATE_IN_PROGRESS"}]},
        )
        manager.cloudformation.get_paginator.return_value.paginate.return_value = []

        with pytest.raises(WaitTimeoutError, match="43200 seconds"):
            manager.update_stack(self.create_request())

    def test_diagnostics_failure_does_not_mask_error(self) -> None:
        manager = self.create_manager()
        manager.stack_waiter.wait.side_effect = WaiterError(
            name="StackUpdateComplete",
            reason="Waiter encountered a terminal failure state",
            last_response={"Stacks": [{"StackStatus": "UPDATE_FAILED"}]},
        )
        manager.cloudformation.get_paginator.side_effect = Exception("throttled")

        with pytest.raises(StackUpdateFailedError, match="UPDATE_FAILED"):
            manager.update_stack(self.create_request())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

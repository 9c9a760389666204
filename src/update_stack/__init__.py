"""
Update Stack - create and execute a CloudFormation change-set from a CI pipeline.
"""

__version__ = "1.0.0"

from .config import UpdateConfig, load_config
from .inputs import ChangeSetRequest, build_change_set_request

__all__ = ["UpdateConfig", "load_config", "ChangeSetRequest", "build_change_set_request"]

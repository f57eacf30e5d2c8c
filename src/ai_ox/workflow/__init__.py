"""
ai_ox.workflow - Finite state machine over async nodes.
"""

from ai_ox.workflow.context import RunContext
from ai_ox.workflow.errors import MaxStepsExceededError, NodeExecutionError, WorkflowError
from ai_ox.workflow.graph import Workflow
from ai_ox.workflow.node import End, Node

__all__ = [
    "End",
    "MaxStepsExceededError",
    "Node",
    "NodeExecutionError",
    "RunContext",
    "Workflow",
    "WorkflowError",
]

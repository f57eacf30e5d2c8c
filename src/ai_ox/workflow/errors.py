"""Errors raised while running a workflow."""


class WorkflowError(Exception):
    """Base class for workflow failures."""


class NodeExecutionError(WorkflowError):
    """A node raised an exception; the original is chained as `__cause__`."""

    def __init__(self, node_name: str, message: str):
        super().__init__(f"Node '{node_name}' failed: {message}")
        self.node_name = node_name


class MaxStepsExceededError(WorkflowError):
    """The workflow ran more nodes than allowed."""

    def __init__(self, max_steps: int):
        super().__init__(f"Workflow exceeded maximum of {max_steps} steps")
        self.max_steps = max_steps

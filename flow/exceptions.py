"""Exceptions for the flow engine."""

from typing import List


class FlowError(Exception):
    """General flow engine error."""

    pass


class FlowStepLimitError(FlowError):
    """Raised when an orchestration exceeds its configured step budget.

    Attributes:
        flow_id: ID of the flow that exceeded the budget.
        max_steps: The configured budget.
    """

    def __init__(self, flow_id: str, max_steps: int) -> None:
        self.flow_id = flow_id
        self.max_steps = max_steps
        super().__init__(
            f"Flow '{flow_id}' exceeded its limit of {max_steps} node executions"
        )


class NodeTimeoutError(FlowError):
    """Raised when a single exec attempt of a node times out."""

    def __init__(self, node_id: str, timeout: float) -> None:
        self.node_id = node_id
        self.timeout = timeout
        super().__init__(f"Node '{node_id}' timed out after {timeout}s")


class ParallelExecutionError(FlowError):
    """Raised when one or more items fail during parallel execution.

    Attributes:
        message: Summary error message.
        errors: List of individual exceptions from failed items, in input order.
    """

    def __init__(self, message: str, errors: List[BaseException]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors

    def __str__(self) -> str:
        error_details = "\n".join(f"  - {type(e).__name__}: {e}" for e in self.errors)
        return f"{self.message}\n{error_details}"


class NodeRegistrationError(FlowError):
    """Raised when a node type is registered twice."""

    pass


class UnknownNodeTypeError(FlowError, KeyError):
    """Raised when a node type is not found in the registry."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Node type '{type_name}' is not registered")

    def __str__(self) -> str:
        return self.args[0]


class FlowDefinitionError(FlowError):
    """Raised when a declarative flow definition is inconsistent."""

    pass

"""Exceptions for the planning agent."""


class AgentError(Exception):
    """Base class for planning agent errors."""

    pass


class ConfigurationError(AgentError):
    """Raised before any run when a required dependency is not configured."""

    pass


class AgentInvocationError(AgentError):
    """Raised when an agent run aborts on a fatal error."""

    pass


class ModelCallError(AgentError):
    """Raised when a model call fails or returns an unusable response."""

    pass


class ModelTimeoutError(ModelCallError):
    """Raised when a model call times out."""

    pass

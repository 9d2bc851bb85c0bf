"""
Errors
======

Fatal error classes of the agent. Recoverable collaborator failures are
reported as values (OperationResult / ExecResult) instead, see models.py.
"""


class HostAgentError(Exception):
    """Base class for every error raised by the agent."""


class ConfigError(HostAgentError):
    """The configuration file exists but cannot be used."""


class ConfigCreatedError(ConfigError):
    """No configuration was found; a default one has been written."""


class HandshakeError(HostAgentError):
    """The connection to the controller could not be established."""


class SessionStateError(HostAgentError):
    """A send or receive was attempted outside the Connected state."""


class ResourceManagerError(HostAgentError):
    """The Docker client could not be built or an inventory listing failed."""

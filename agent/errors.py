class AgentError(Exception):
    pass


class NetworkManagerError(AgentError):
    """A network manager command failed, timed out or returned nothing usable."""


class MonitorError(AgentError):
    pass


class StatusUnavailable(MonitorError):
    pass


class NoAlternativeProfile(MonitorError):
    pass


class TelemetryError(AgentError):
    pass

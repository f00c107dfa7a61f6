from .messages import ControlMessage, MetricEvent

__all__ = ["ControlMessage", "MetricEvent"]

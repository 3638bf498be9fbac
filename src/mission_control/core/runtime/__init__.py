from .context import MissionControl, RuntimeHealth

__all__ = ["MissionControl", "RuntimeHealth"]

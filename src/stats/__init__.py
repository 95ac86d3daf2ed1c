from .service import NullStatsSink, StatsService, StatsSink

__all__ = ["NullStatsSink", "StatsService", "StatsSink"]

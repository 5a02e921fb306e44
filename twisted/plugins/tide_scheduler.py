"""
Tide twisted application plugins.
"""

from twisted.application.service import ServiceMaker

TideScheduler = ServiceMaker(
    "Tide autoscaling scheduler",
    "tide.tap.scheduler",
    "Autoscale pools on an interval",
    "tide-scheduler"
)

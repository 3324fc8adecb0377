"""
CLI commands for runreport.
"""

from runreport.cli.replay import replay_command

__all__ = ["replay_command"]

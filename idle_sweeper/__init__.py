"""idle-sweeper: unassign idle contributors and nudge the ones at risk."""

__version__ = "0.1.0"

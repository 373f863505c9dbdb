"""Idle-assignee policy engine.

Key Components:
    - ActivityAggregator: events and linked pull request commits per issue
    - window: pool-level idle check within a time window
    - DisqualificationPolicy: grace period and unassignment
    - FollowUpPolicy: one reminder per disqualify window
    - TaskSweeper: per-issue orchestration and run summary
"""

from idle_sweeper.engine.aggregator import ActivityAggregator
from idle_sweeper.engine.disqualify import DisqualificationPolicy, split_by_grace
from idle_sweeper.engine.follow_up import FollowUpPolicy, build_follow_up_message
from idle_sweeper.engine.sweeper import TaskSweeper

__all__ = [
    "ActivityAggregator",
    "DisqualificationPolicy",
    "FollowUpPolicy",
    "TaskSweeper",
    "build_follow_up_message",
    "split_by_grace",
]

"""Streaming aggregation of ``go test -json`` output."""

from testie.process.aggregator import Aggregator
from testie.process.models import Action, Counters, Event, Outcome, TestCase, TestKey

__all__ = ["Action", "Aggregator", "Counters", "Event", "Outcome", "TestCase", "TestKey"]

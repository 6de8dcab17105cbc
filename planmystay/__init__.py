"""PlanMyStay — server-rendered travel listings."""

__version__ = "0.1.0"

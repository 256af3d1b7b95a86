"""Run ad-hoc ECS tasks and watch them until they finish."""

__version__ = "0.1.0"

"""Command line entry point (``pantry-planner``)."""

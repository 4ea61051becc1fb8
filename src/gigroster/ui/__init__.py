"""User interface entry points."""

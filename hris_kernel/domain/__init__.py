"""Pure domain value objects: clock and workflow definitions."""

"""Core merge logic, free of any Qt dependency."""

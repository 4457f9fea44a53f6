"""HTTP API over stored index values and analytics."""

"""HTTP API for component assignment and resolution."""

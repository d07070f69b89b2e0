"""HTTP API for ProblemScout."""

"""ProblemScout: turns a market topic into ranked, evidence-backed customer problems."""

__version__ = "0.1.0"

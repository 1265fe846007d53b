"""Runtime: retry execution, cancellation and observability."""

"""Release and lock record models."""

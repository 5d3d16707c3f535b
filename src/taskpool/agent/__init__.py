"""Agent-side client and work loop for the task pool server."""

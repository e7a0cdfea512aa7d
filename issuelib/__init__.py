"""Context-budgeted issue analysis against a local or hosted LLM."""

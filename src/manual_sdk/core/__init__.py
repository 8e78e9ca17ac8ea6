"""Document model, projection, history and session state."""

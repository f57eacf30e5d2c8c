"""ai-ox command line interface."""

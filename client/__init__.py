"""Python chat client for the relay."""

"""pyreflect command line."""

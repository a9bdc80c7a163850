"""Source fixtures reflected by the test-suite."""

"""Terminal rendering of the test report."""

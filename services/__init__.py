"""Entity services, the purchase workflow, analytics and the auth wrapper."""

"""Click commands grouped by namespace."""

"""HTTP trigger for the sync pipeline."""

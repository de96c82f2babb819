"""HTTP API for the pricing admin workflows."""

"""Read-path HTTP resources."""

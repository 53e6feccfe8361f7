"""HTTP API: dependencies, routes and response models."""

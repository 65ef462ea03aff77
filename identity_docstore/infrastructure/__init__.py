"""Infrastructure layer: configuration, document backends and the user store."""

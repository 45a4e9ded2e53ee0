"""pkg-manager: publish packages only when their build output changed."""

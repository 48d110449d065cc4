"""CSV input and output."""

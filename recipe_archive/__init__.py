"""Client library for the recipe archive backend."""

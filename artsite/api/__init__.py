"""HTTP surface of the artsite backend."""

"""Core domain logic: chunking, rank fusion and the exception hierarchy."""

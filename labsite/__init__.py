"""Lab website rendered from a cached researchmap snapshot."""

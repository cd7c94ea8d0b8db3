"""Record fetching, lookup and slide assembly services."""

"""One JSON file per curriculum level."""

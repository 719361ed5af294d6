"""MetaTest command-line interface."""

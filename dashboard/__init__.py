"""MetaTest web dashboard and HTTP API."""

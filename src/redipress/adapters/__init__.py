"""Adapters to the systems around the pipeline: the search engine and the content store."""

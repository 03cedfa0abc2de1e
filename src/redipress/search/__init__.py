"""
Indexing pipeline package.

- schema: Field types and the index schema
- hooks: Filter registries and event sinks
- converter: Content entity to document conversion
- index_manager: Index lifecycle and document maintenance
- persistence: Save checkpoints after mutations
- results: Operation outcomes
"""

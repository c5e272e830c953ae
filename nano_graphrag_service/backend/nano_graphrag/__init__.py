"""nano-graphrag: a small document indexing and retrieval pipeline.

Documents are cut into overlapping token windows, stored in content-addressed
key-value stores and indexed for nearest-neighbour search. ``GraphRAG``
composes the pieces; only ``naive`` (chunk-level) retrieval answers queries.
A property graph with connected-components clustering is kept alongside as
the substrate for entity-level retrieval.
"""

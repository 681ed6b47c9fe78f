"""
Fuzzy matching and indexing package.

This package provides the pieces the search engine is assembled from:
- keys: Weighted key descriptors and the normalizing KeyStore
- extraction: Field value extraction along key paths
- bitap: Bit-parallel approximate matcher
- extended: Extended query grammar (exact, prefix, suffix, include, inverse)
- logical: $and/$or query trees
- index: Precomputed field values with field-length norms
- scoring: Score aggregation and result formatting
- storage: Index snapshots on disk
- highlight: Matched range highlighting and snippets
"""

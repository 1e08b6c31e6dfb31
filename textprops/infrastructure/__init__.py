"""Provider adapters backed by third-party NLP libraries."""

"""IndexView — live views over a changing index, rendered from runtime-typed values."""

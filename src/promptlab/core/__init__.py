"""Provider normalization core: registry, formatting, normalization, dispatch."""

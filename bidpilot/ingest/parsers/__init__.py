"""Feed-format parsers shared by the per-source modules."""

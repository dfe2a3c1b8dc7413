"""The Qwen3 embedding transformer: blocks, causal masking, and truncation."""

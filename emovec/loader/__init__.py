"""Loading a resident model: files, weights, and the tokenizer.

Checkpoint folders come either from a local directory or from the Hugging
Face Hub. Safetensors shards are read into one flat state dict, the common
`model.` prefix is stripped, and the tensors are installed into the
transformer through an explicit table of parameter paths.
"""
from __future__ import annotations

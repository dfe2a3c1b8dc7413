"""emovec: on-device text embeddings and emotion-word vector search.

emovec runs a 4-bit quantized Qwen3-style embedding model with PyTorch and
uses the resulting vectors to search a small corpus of emotion words tagged
with pleasure/arousal/dominance scores.

Core pieces:
- Engine: tokenization -> transformer forward pass -> last-token pooling
- Store: incremental index build, JSON cache, batched cosine top-K search
- Similarity: cosine, Euclidean distance and diagonal whitening helpers
"""

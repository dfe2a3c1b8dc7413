"""Neural network layers: the building blocks of the embedding model.

Every projection in the checkpoint is stored 4-bit quantized, so the linear
and embedding layers here dequantize on the fly. Normalization, rotary
encoding, attention and the gated MLP are composed from them in
`emovec.model`.
"""

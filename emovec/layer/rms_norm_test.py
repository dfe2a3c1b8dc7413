"""
rms_norm_test provides tests for RMSNorm.
"""
from __future__ import annotations

import unittest
import torch

from emovec.layer.rms_norm import RMSNormLayer


class RMSNormTest(unittest.TestCase):
    """
    RMSNormTest provides tests for RMSNorm.
    """
    def test_forward_shape(self) -> None:
        """
        test RMSNorm output shape.
        """
        norm = RMSNormLayer(8, eps=1e-5)
        y = norm(torch.randn(2, 3, 8))
        self.assertEqual(tuple(y.shape), (2, 3, 8))

    def test_unit_scale_gives_unit_rms(self) -> None:
        norm = RMSNormLayer(16, eps=1e-6)
        y = norm(torch.randn(4, 16) * 5.0)
        rms = y.pow(2).mean(dim=-1).sqrt()
        self.assertTrue(torch.allclose(rms, torch.ones(4), atol=1e-4))

    def test_learned_scale_applies(self) -> None:
        norm = RMSNormLayer(4)
        norm.set_weight(torch.tensor([1.0, 2.0, 3.0, 4.0]))
        x = torch.ones(1, 4)
        self.assertTrue(torch.allclose(norm(x), torch.tensor([[1.0, 2.0, 3.0, 4.0]]), atol=1e-5))

    def test_set_weight_checks_shape(self) -> None:
        with self.assertRaises(ValueError):
            RMSNormLayer(4).set_weight(torch.ones(5))


if __name__ == "__main__":
    unittest.main()

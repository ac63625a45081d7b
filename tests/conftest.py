"""
Shared helpers: synthetic model output rows and a stub inference handle.
"""

import numpy as np
import pytest


# Scores that fit in the reference 22-value stride after x1, y1, x2, y2, objectness
NUM_CATEGORIES = 17


def make_box(x1, y1, x2, y2, objectness, scores=None, best=2, best_score=0.9):
    """Build one box slice: coordinates, objectness, category scores."""
    if scores is None:
        scores = [0.0] * NUM_CATEGORIES
        scores[best] = best_score
    return [x1, y1, x2, y2, objectness, *scores]


def make_output(*boxes):
    """Stack box slices into a flat float32 output tensor."""
    return np.array([v for box in boxes for v in box], dtype=np.float32)


class StubNet:
    """Stands in for cv2.dnn.Net: records the input, returns a fixed output."""

    def __init__(self, output):
        self.output = np.asarray(output, dtype=np.float32)
        self.inputs = []

    def setInput(self, blob):
        self.inputs.append(blob)

    def forward(self):
        return self.output


@pytest.fixture
def stub_net():
    return StubNet

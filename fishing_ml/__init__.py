"""
Fishing Activity Classification Pipeline.

Trains a single-hidden-layer neural network and a gradient-boosted tree
ensemble on vessel polls to label each poll fishing / notfishing.
"""

from .data_loader import load_observations
from .feature_engineering import engineer_features, label_fishing
from .model import BOOSTED_TREES, NETWORK, TrainedModel
from .pipeline import RunContext, run
from .predict import predict
from .train import train_model

__all__ = [
    "load_observations",
    "engineer_features",
    "label_fishing",
    "BOOSTED_TREES",
    "NETWORK",
    "TrainedModel",
    "RunContext",
    "run",
    "predict",
    "train_model",
]

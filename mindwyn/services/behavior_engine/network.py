"""
Small feed-forward network for stress/focus/energy prediction.

Architecture (fixed):
    Input(8) -> Linear(16) + ReLU -> Dropout(0.2) -> Linear(8) + ReLU -> Linear(3) + Sigmoid

StressNet is the torch module; FeedForwardNetwork wraps it with NumPy
in/out inference, Adam/MSE training and state_dict checkpoints.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import torch
import torch.nn as nn
from torch.utils.data import DataLoader, TensorDataset

logger = logging.getLogger(__name__)


INPUT_FEATURES = 8
OUTPUT_SCORES = 3


class StressNet(nn.Module):
    """8 -> 16 -> 8 -> 3 MLP with sigmoid outputs in [0, 1]."""

    def __init__(self, dropout: float = 0.2):
        super().__init__()
        self.layers = nn.Sequential(
            nn.Linear(INPUT_FEATURES, 16),
            nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(16, 8),
            nn.ReLU(),
            nn.Linear(8, OUTPUT_SCORES),
            nn.Sigmoid(),
        )

    def forward(self, features: torch.Tensor) -> torch.Tensor:
        return self.layers(features)


class FeedForwardNetwork:
    """
    Inference, training and persistence around a StressNet.

    A freshly constructed instance has default (Glorot-uniform style) torch
    initialisation: its outputs lie in [0, 1] but carry no calibrated
    meaning. Only weights loaded from a trained checkpoint do.
    """

    def __init__(self, model: Optional[StressNet] = None, seed: Optional[int] = None, device: str = "cpu"):
        if model is None:
            if seed is not None:
                torch.manual_seed(seed)
            model = StressNet()
        self.device = torch.device(device)
        self.model = model.to(self.device)
        self.model.eval()
        self.trained = False

    # --- INFERENCE ---

    def predict(self, features: np.ndarray) -> np.ndarray:
        """Run inference on a (n, 8) or (8,) input. Returns (n, 3) or (3,)."""
        x = np.asarray(features, dtype=np.float32)
        single = x.ndim == 1
        if single:
            x = x[np.newaxis, :]
        if x.ndim != 2 or x.shape[1] != INPUT_FEATURES:
            raise ValueError(f"Expected {INPUT_FEATURES} input features, got shape {x.shape}")

        self.model.eval()
        with torch.no_grad():
            outputs = self.model(torch.from_numpy(x).to(self.device)).cpu().numpy()
        return outputs[0] if single else outputs

    # --- TRAINING ---

    def fit(
        self,
        features: np.ndarray,
        targets: np.ndarray,
        epochs: int = 10,
        batch_size: int = 32,
        learning_rate: float = 0.001,
        validation_split: float = 0.2,
        seed: Optional[int] = None,
    ) -> Dict[str, List[float]]:
        """
        Mini-batch Adam on mean squared error.

        The last `validation_split` fraction of the samples is held out.

        Returns:
            dict with per-epoch "loss" and "val_loss" (val_loss empty when
            the validation split leaves no samples)
        """
        x = np.asarray(features, dtype=np.float32)
        y = np.asarray(targets, dtype=np.float32)
        if x.ndim != 2 or x.shape[1] != INPUT_FEATURES:
            raise ValueError(f"features must have shape (n, {INPUT_FEATURES}), got {x.shape}")
        if y.shape != (x.shape[0], OUTPUT_SCORES):
            raise ValueError(f"targets must have shape ({x.shape[0]}, {OUTPUT_SCORES}), got {y.shape}")

        n_val = int(len(x) * validation_split)
        n_train = len(x) - n_val
        if n_train == 0:
            raise ValueError("No training samples left after validation split")

        x_tensor = torch.from_numpy(x).to(self.device)
        y_tensor = torch.from_numpy(y).to(self.device)
        generator = torch.Generator()
        if seed is not None:
            generator.manual_seed(seed)
        loader = DataLoader(
            TensorDataset(x_tensor[:n_train], y_tensor[:n_train]),
            batch_size=batch_size,
            shuffle=True,
            generator=generator,
        )

        optimizer = torch.optim.Adam(self.model.parameters(), lr=learning_rate)
        criterion = nn.MSELoss()

        history = {"loss": [], "val_loss": []}
        for epoch in range(epochs):
            self.model.train()
            total_loss = 0.0
            for batch_x, batch_y in loader:
                loss = criterion(self.model(batch_x), batch_y)

                optimizer.zero_grad()
                loss.backward()
                optimizer.step()

                total_loss += loss.item() * len(batch_x)

            history["loss"].append(total_loss / n_train)
            if n_val:
                self.model.eval()
                with torch.no_grad():
                    val_loss = criterion(self.model(x_tensor[n_train:]), y_tensor[n_train:]).item()
                history["val_loss"].append(val_loss)
            logger.debug(f"Epoch {epoch + 1}/{epochs} - loss: {history['loss'][-1]:.5f}")

        self.model.eval()
        self.trained = True
        logger.info(f"Network training completed ({epochs} epochs, {n_train} samples)")
        return history

    # --- PERSISTENCE ---

    def save(self, path: Union[str, Path]) -> None:
        """Save a model checkpoint"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        torch.save({
            "model_state_dict": self.model.state_dict(),
            "trained": self.trained,
        }, path)
        logger.info(f"Network checkpoint saved to {path}")

    @classmethod
    def load(cls, path: Union[str, Path], device: str = "cpu") -> "FeedForwardNetwork":
        """
        Load a model checkpoint.

        Raises:
            OSError: the file cannot be read
            ValueError: the file is not a StressNet checkpoint
        """
        checkpoint = torch.load(Path(path), map_location=torch.device(device), weights_only=True)
        if not isinstance(checkpoint, dict) or "model_state_dict" not in checkpoint:
            raise ValueError(f"{path} is not a network checkpoint")

        model = StressNet()
        model.load_state_dict(checkpoint["model_state_dict"])
        network = cls(model=model, device=device)
        network.trained = True
        logger.info(f"Network checkpoint loaded from {path}")
        return network

"""Lazy, cached access to the NVIDIA Parakeet (NeMo) ASR model.

NeMo and torch are imported on first use so the analysis modules, the
viewer and the test-suite run without them. Import or load failures surface
as :class:`~wavescope.errors.ModelUnavailable`.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from wavescope.errors import ModelUnavailable
from wavescope.utils.constant import PARAKEET_MODEL_NAME

if TYPE_CHECKING:  # Import for type hints only to avoid heavy runtime import
    from nemo.collections.asr.models import ASRModel

logger = logging.getLogger(__name__)

__all__ = ["get_model", "best_device"]


def best_device() -> str:
    """Return ``"cuda"`` when CUDA/ROCm is available, else ``"cpu"``.

    Raises:
        ModelUnavailable: If torch is not installed.
    """
    try:
        import torch  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise ModelUnavailable("PyTorch is not installed; install the 'asr' extra") from exc
    return "cuda" if torch.cuda.is_available() else "cpu"


def _load_model(model_name: str) -> ASRModel:
    """Load a pretrained model in eval mode on the best device.

    Args:
        model_name: Hugging Face model ID or local ``.nemo`` path.

    Returns:
        The model, ready for inference.

    Raises:
        ModelUnavailable: If NeMo is missing or the checkpoint cannot be loaded.
    """
    try:
        import nemo.collections.asr as nemo_asr  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise ModelUnavailable("NeMo toolkit is not installed; install the 'asr' extra") from exc

    device = best_device()
    logger.info(f"Loading ASR model {model_name} on {device}")
    try:
        model = nemo_asr.models.ASRModel.from_pretrained(model_name).eval()
        model.to(device)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ModelUnavailable(f"cannot load ASR model {model_name!r}: {exc}") from exc
    return model


@lru_cache(maxsize=2)
def get_model(model_name: str = PARAKEET_MODEL_NAME) -> ASRModel:
    """Retrieve the cached model, loading it on first request.

    Args:
        model_name: Model identifier or path to load if not already cached.

    Returns:
        The cached ASRModel instance.
    """
    return _load_model(model_name)

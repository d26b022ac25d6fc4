from __future__ import annotations

from pathlib import Path
from typing import Type, TypeVar

import torch
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

DEFAULT_RAW_NAME = "preview.pt"


def _resolve_target(path: str | Path) -> Path:
    path = Path(str(path)).expanduser()
    if path.is_dir():
        path = path / DEFAULT_RAW_NAME

    parent = path.parent
    if parent.exists() and not parent.is_dir():
        raise NotADirectoryError(
            f"Cannot save to {path}: {parent} exists and is not a directory"
        )
    parent.mkdir(parents=True, exist_ok=True)
    return path


def save_state(state: BaseModel, path: str | Path) -> Path:
    """
    Save a result model with torch.save.

    The model is stored as its `model_dump()`: nested dicts of tensors and plain
    values, which `load_state` can read back without unpickling arbitrary classes.
    A directory argument gets the file name `preview.pt`.

    Returns:
        Path: The resolved path written.
    """
    path = _resolve_target(path)
    torch.save(state.model_dump(), path)
    return path.resolve()


def load_state(
    path: str | Path,
    model_type: Type[T],
    map_location: str | torch.device | None = "cpu",
) -> T:
    """
    Load a file written by `save_state` and validate it as `model_type`.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the content does not match `model_type`.
    """
    path = Path(str(path)).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Raw result not found: {path}")
    data = torch.load(path, map_location=map_location, weights_only=True)
    return model_type.model_validate(data)

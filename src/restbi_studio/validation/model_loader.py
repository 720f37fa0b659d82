"""
Loading models from files and from the JSON text users edit.

Bad input never raises here: unparseable text yields ``None`` so the caller
can treat the model as "not ready".  Bundled demo models live under
``sample_models/`` as YAML.
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from restbi_studio.core.config import get_settings
from restbi_studio.core.logging import get_logger
from restbi_studio.domain.schema import Model

logger = get_logger(__name__)

_SAMPLE_MODELS_PATH = Path(__file__).resolve().parents[3] / "sample_models"
_YAML_SUFFIXES = (".yml", ".yaml")


# ── Text ────────────────────────────────────────────────

def model_to_text(model: Model) -> str:
    """2-space indented JSON, the form shown in the model editor."""
    return json.dumps(model.to_wire(), indent=2, ensure_ascii=False)


def prettify_json(text: str) -> str:
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        logger.debug("prettify_json: input is not valid JSON, left as-is")
        return text


def parse_model_text(text: str) -> Model | None:
    """Parse editor text into a ``Model``; ``None`` if it is not a valid model."""
    try:
        raw = json.loads(text)
    except ValueError as exc:
        logger.warning("Invalid JSON format: %s", exc)
        return None
    return _to_model(raw, source="editor text")


# ── Files ───────────────────────────────────────────────

def load_model_file(path: str | Path) -> Model:
    """Load a model from ``.json`` or ``.yml`` / ``.yaml``.

    Raises
    ------
    ValueError
        If the file content is not a valid model.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() in _YAML_SUFFIXES:
            raw = yaml.safe_load(f)
        else:
            raw = json.load(f)
    model = _to_model(raw, source=str(path))
    if model is None:
        raise ValueError(f"{path} does not contain a valid model")
    return model


def sample_models_dir() -> Path:
    override = get_settings().sample_models_dir
    return Path(override) if override else _SAMPLE_MODELS_PATH


def list_sample_models() -> list[str]:
    """Names (file stems) of the bundled models."""
    directory = sample_models_dir()
    if not directory.is_dir():
        return []
    return sorted(
        p.stem for p in directory.iterdir()
        if p.suffix.lower() in _YAML_SUFFIXES + (".json",)
    )


def load_sample_model(name: str) -> Model:
    """A fresh copy of a bundled model.

    Raises
    ------
    KeyError
        If no sample model has that name.
    """
    return _load_sample_cached(name).model_copy(deep=True)


@lru_cache
def _load_sample_cached(name: str) -> Model:
    available = list_sample_models()
    if name not in available:
        raise KeyError(f"Unknown sample model '{name}'. Available: {', '.join(available)}")
    directory = sample_models_dir()
    for suffix in _YAML_SUFFIXES + (".json",):
        candidate = directory / f"{name}{suffix}"
        if candidate.is_file():
            return load_model_file(candidate)
    raise KeyError(f"Unknown sample model '{name}'")


def _to_model(raw: Any, source: str) -> Model | None:
    try:
        return Model.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Invalid model in %s: %d error(s)", source, exc.error_count())
        return None

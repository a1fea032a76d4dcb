"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "EDK_"
DEFAULT_CONFIG_PATH = Path("~/.config/edkids-rag/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("corpus", "root"): "kb_root",
    ("corpus", "suffixes"): "source_suffixes",
    ("corpus", "chunk_max_chars"): "chunk_max_chars",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("embeddings", "api_key"): "openai_api_key",
    ("embeddings", "base_url"): "openai_base_url",
    ("embeddings", "timeout"): "embedding_timeout",
    ("retrieval", "vector_weight"): "vector_weight",
    ("retrieval", "lexical_weight"): "lexical_weight",
    ("retrieval", "min_vector_score"): "min_vector_score",
    ("retrieval", "rrf_k"): "rrf_k",
    ("tutor", "top_k"): "tutor_top_k",
}


# OpenAI embeddings put unrelated text well above zero cosine.
_VECTOR_SCORE_FLOORS: Mapping[str, float] = {"openai": 0.25, "hashed": 0.0, "none": 0.0}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".edkids-rag" / "kb.db")
    kb_root: Path = Field(default=Path("kb"))
    source_suffixes: tuple[str, ...] = (".md", ".txt")
    chunk_max_chars: int = Field(default=900, ge=1)
    embedding_backend: Literal["openai", "hashed", "none"] = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dim: int = Field(default=384, ge=1)
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    embedding_timeout: float = Field(default=20.0, gt=0)
    vector_weight: float = Field(default=1.0, ge=0)
    lexical_weight: float = Field(default=1.0, ge=0)
    min_vector_score: float | None = None
    rrf_k: float = Field(default=60.0, gt=0)
    tutor_top_k: int = Field(default=6, ge=1)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", "kb_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("path settings must be a path or string")

    @field_validator("source_suffixes", mode="before")
    @classmethod
    def _split_suffixes(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple)):
            return tuple(item if item.startswith(".") else f".{item}" for item in value)
        return value

    @property
    def vector_score_floor(self) -> float:
        """Cosine a chunk must exceed to count as a vector match."""
        if self.min_vector_score is not None:
            return self.min_vector_score
        return _VECTOR_SCORE_FLOORS[self.embedding_backend]

    @property
    def embeddings_configured(self) -> bool:
        if self.embedding_backend == "none":
            return False
        if self.embedding_backend == "openai":
            return bool(self.openai_api_key)
        return True

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with EDK_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    # The provider's conventional variable is honoured as a fallback.
    if "openai_api_key" not in overrides and os.environ.get("OPENAI_API_KEY"):
        overrides["openai_api_key"] = os.environ["OPENAI_API_KEY"]
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]

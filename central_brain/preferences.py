"""
Preference Store
================

JSON-file backed provider/model preferences, global and per feature.

Design:
- Stored data is merged over built-in defaults, so a partial file is fine
- The Google default set is used as the base when the stored default
  provider is ``google``
- Deprecated model ids are migrated on load
- Read or parse failures log a warning and yield defaults; write failures
  are logged and never raised
- The loaded document is kept in memory and re-read only when the file's
  mtime or size changes
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from central_brain.core.config import settings
from central_brain.core.types import ProviderTag
from central_brain.orchestration.models import Preferences, ProviderChoice

logger = logging.getLogger(__name__)

_DEPRECATED_MODELS: dict[str, str] = {
    "gemini-pro": "gemini-2.0-flash",
}

# ── Schema ───────────────────────────────────────────────────────────────────

class FeaturePreference(BaseModel):
    provider: str
    model: str

    def to_choice(self) -> ProviderChoice:
        return ProviderChoice(provider=self.provider, model=self.model)

class PreferenceDocument(BaseModel):
    """On-disk preference document."""

    default_provider: str = ProviderTag.GROK.value
    default_model: str = "grok-4-0709"
    per_feature_preferences: dict[str, FeaturePreference] = Field(default_factory=dict)

    def to_preferences(self) -> Preferences:
        return Preferences(
            default=ProviderChoice(provider=self.default_provider, model=self.default_model),
            per_feature={k: v.to_choice() for k, v in self.per_feature_preferences.items()},
        )

def default_preferences() -> PreferenceDocument:
    return PreferenceDocument(
        default_provider=ProviderTag.GROK.value,
        default_model="grok-4-0709",
        per_feature_preferences={
            "chat": FeaturePreference(provider=ProviderTag.GROK.value, model="grok-4-0709"),
            "ipo": FeaturePreference(provider=ProviderTag.GROK.value, model="grok-4-0709"),
            "translation": FeaturePreference(provider=ProviderTag.GROK.value, model="grok-3-mini-beta"),
        },
    )

def google_default_preferences() -> PreferenceDocument:
    google = ProviderTag.GOOGLE.value
    return PreferenceDocument(
        default_provider=google,
        default_model="gemini-2.0-flash",
        per_feature_preferences={
            feature: FeaturePreference(provider=google, model="gemini-2.0-flash")
            for feature in ("chat", "ipo", "translation")
        },
    )

def _migrate(raw: dict) -> dict:
    migrated = dict(raw)
    model = migrated.get("default_model")
    if model in _DEPRECATED_MODELS:
        migrated["default_model"] = _DEPRECATED_MODELS[model]
    features = migrated.get("per_feature_preferences")
    if isinstance(features, dict):
        migrated["per_feature_preferences"] = {
            name: (
                {**pref, "model": _DEPRECATED_MODELS[pref["model"]]}
                if isinstance(pref, dict) and pref.get("model") in _DEPRECATED_MODELS
                else pref
            )
            for name, pref in features.items()
        }
    return migrated

# ── Store ────────────────────────────────────────────────────────────────────

class PreferenceStore:
    """Loads and persists PreferenceDocument at a filesystem path."""

    def __init__(self, path: Path | str | None = None):
        self._path = Path(path) if path is not None else settings.PREFERENCES_PATH
        self._loaded: tuple[tuple[int, int], PreferenceDocument] | None = None
        self._reads = 0

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> PreferenceDocument:
        """Current preferences; callers get a copy they may mutate."""
        try:
            stat = self._path.stat()
        except OSError:
            self._loaded = None
            return default_preferences()

        signature = (stat.st_mtime_ns, stat.st_size)
        if self._loaded is not None and self._loaded[0] == signature:
            return self._loaded[1].model_copy(deep=True)

        document = self._read()
        self._loaded = (signature, document)
        return document.model_copy(deep=True)

    def _read(self) -> PreferenceDocument:
        self._reads += 1
        try:
            stored = PreferenceDocument.model_validate(
                _migrate(_read_json_object(self._path))
            )
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Error loading AI preferences from %s: %s", self._path, e)
            return default_preferences()

        base = (
            google_default_preferences()
            if stored.default_provider == ProviderTag.GOOGLE
            else default_preferences()
        )
        explicit = stored.model_fields_set
        return PreferenceDocument(
            default_provider=stored.default_provider
            if "default_provider" in explicit else base.default_provider,
            default_model=stored.default_model
            if "default_model" in explicit else base.default_model,
            per_feature_preferences={
                **base.per_feature_preferences,
                **stored.per_feature_preferences,
            },
        )

    def save(self, document: PreferenceDocument) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
            self._loaded = None
            logger.info("AI preferences saved to %s", self._path)
        except OSError as e:
            logger.error("Error saving AI preferences to %s: %s", self._path, e)

    def get_stats(self) -> dict[str, object]:
        return {"path": str(self._path), "reads": self._reads, "cached": self._loaded is not None}

    def get_preferences(self) -> Preferences:
        return self.load().to_preferences()

    def get_feature_preference(self, feature: str) -> ProviderChoice:
        """Feature override if stored, else the default pair."""
        document = self.load()
        pref = document.per_feature_preferences.get(feature)
        if pref is not None:
            return pref.to_choice()
        return ProviderChoice(provider=document.default_provider, model=document.default_model)

    def update_feature_preference(self, feature: str, provider: str, model: str) -> None:
        document = self.load()
        document.per_feature_preferences[feature] = FeaturePreference(provider=provider, model=model)
        self.save(document)

    def update_default_preference(self, provider: str, model: str) -> None:
        document = self.load()
        document.default_provider = provider
        document.default_model = model
        self.save(document)

def _read_json_object(path: Path) -> dict:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("preferences file must hold a JSON object")
    return data

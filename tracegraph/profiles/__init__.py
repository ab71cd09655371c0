"""Language profiles — one decoder/linker pair per memory model."""

from __future__ import annotations

import importlib

from ..render_types import RenderConfig
from ._base import Profile

# Lazy imports to avoid loading every profile at startup
_PROFILE_CLASSES: dict[str, str] = {
    "c": "address.AddressProfile",
    "cpp": "address.AddressProfile",
    "python": "reference.ReferenceProfile",
    "python3": "reference.ReferenceProfile",
}


def get_profile(language: str, config: RenderConfig = RenderConfig()) -> Profile:
    """Instantiate the profile that decodes traces for *language*.

    Raises ``ValueError`` if *language* has no registered profile.
    """
    entry = _PROFILE_CLASSES.get(language.lower())
    if entry is None:
        raise ValueError(f"Unsupported language for visualization: {language}")
    module_name, class_name = entry.split(".")
    mod = importlib.import_module(f".{module_name}", package=__package__)
    cls = getattr(mod, class_name)
    return cls(config)


SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(_PROFILE_CLASSES.keys())

__all__ = [
    "Profile",
    "get_profile",
    "SUPPORTED_LANGUAGES",
]

"""libshaderfix.versions

material.bin format revisions and the detected game release.

Two versions matter for every material:

  decode version    the format revision that parsed the bytes
  detected version  the revision matching the running game, resolved once
                    per process and cached

The host may load materials from several threads, so the detected version
lives in a settle-once cell and the "recent release" flag is a publish-once
Event.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

log = logging.getLogger(__name__)

Release = Tuple[int, int, int]

T = TypeVar("T")


class MinecraftVersion(Enum):
    V1_18_30 = (1, 18, 30)
    V1_19_60 = (1, 19, 60)
    V1_20_80 = (1, 20, 80)
    V1_21_20 = (1, 21, 20)
    V1_21_110 = (1, 21, 110)

    @property
    def release(self) -> Release:
        return self.value

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.value)


# Decode priority: newest format first.
ALL_VERSIONS = (
    MinecraftVersion.V1_21_110,
    MinecraftVersion.V1_21_20,
    MinecraftVersion.V1_20_80,
    MinecraftVersion.V1_19_60,
    MinecraftVersion.V1_18_30,
)

# Releases from here on need the lightmap fix for older RenderChunk materials.
RECENT_RELEASE: Release = (1, 21, 100)


def parse_release(text: str) -> Release:
    """'1.21.101' -> (1, 21, 101). Extra components (build numbers) are ignored."""
    parts = text.strip().split(".")
    if len(parts) < 3:
        raise ValueError(f"Not a release string: {text!r}")
    try:
        major, minor, patch = (int(p) for p in parts[:3])
    except ValueError:
        raise ValueError(f"Not a release string: {text!r}") from None
    return (major, minor, patch)


def version_for_release(release: Release) -> Optional[MinecraftVersion]:
    """Newest format revision not newer than ``release``."""
    for v in ALL_VERSIONS:
        if v.release <= release:
            return v
    return None


class SettleOnce(Generic[T]):
    """Lazily computed value, settled exactly once even under concurrent first use.

    ``None`` is a valid settled value; a raising initializer leaves the cell
    unsettled so a later call can try again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._settled = False
        self._value: Optional[T] = None

    @property
    def is_settled(self) -> bool:
        return self._settled

    def get_or_init(self, init: Callable[[], T]) -> T:
        if self._settled:
            return self._value  # type: ignore[return-value]
        with self._lock:
            if not self._settled:
                self._value = init()
                self._settled = True
        return self._value  # type: ignore[return-value]


VersionDetector = Callable[[Any], Optional[str]]


class VersionState:
    def __init__(self) -> None:
        self._detected: SettleOnce[Optional[MinecraftVersion]] = SettleOnce()
        self._recent = threading.Event()

    @property
    def recent_release(self) -> bool:
        return self._recent.is_set()

    def detect(self, handle: Any, detector: VersionDetector) -> Optional[MinecraftVersion]:
        return self._detected.get_or_init(lambda: self._resolve(handle, detector))

    def _resolve(self, handle: Any, detector: VersionDetector) -> Optional[MinecraftVersion]:
        try:
            text = detector(handle)
        except Exception as e:
            log.warning("Game version detection failed: %s", e)
            return None
        if text is None:
            log.warning("Game version not found, material fixes disabled")
            return None
        try:
            release = parse_release(text)
        except ValueError as e:
            log.warning("%s", e)
            return None

        version = version_for_release(release)
        if version is None:
            log.warning("Game release %s predates every known material format", text)
            return None
        if release >= RECENT_RELEASE:
            self._recent.set()
        log.info("Detected game release %s (material format %s)", text, version)
        return version


DEFAULT_STATE = VersionState()

"""Sprite lookup for fused pairs and type icon paths."""

from __future__ import annotations

import logging
import pathlib
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from .errors import InvalidParameterError
from .models import Attribution, ImageRef

logger = logging.getLogger(__name__)

SPRITE_FILE_RE = re.compile(r"^(\d+)\.(\d+)\.png$")
TYPE_NAME_RE = re.compile(r"^[a-zA-Z]{3,15}$")

CUSTOM_URL = "/sprites/custom/{head}.{body}.png"
AUTOGEN_URL = "/sprites/autogen/{head}/{head}.{body}.png"
MISSING_URL = "/api/images/missing"


@dataclass(frozen=True)
class SpriteIndex:
    curated: FrozenSet[Tuple[int, int]] = frozenset()
    generated: Dict[int, FrozenSet[int]] = field(default_factory=dict)
    custom_dir: Optional[pathlib.Path] = None
    autogen_dir: Optional[pathlib.Path] = None

    @classmethod
    def scan(cls, custom_dir: pathlib.Path, autogen_dir: pathlib.Path) -> "SpriteIndex":
        curated = set()
        if custom_dir.is_dir():
            for p in custom_dir.iterdir():
                m = SPRITE_FILE_RE.match(p.name)
                if m and p.is_file():
                    curated.add((int(m.group(1)), int(m.group(2))))
        else:
            logger.warning("Custom sprites directory not found: %s", custom_dir)

        generated: Dict[int, FrozenSet[int]] = {}
        if autogen_dir.is_dir():
            for head_dir in autogen_dir.iterdir():
                if not (head_dir.is_dir() and head_dir.name.isdigit()):
                    continue
                head_id = int(head_dir.name)
                bodies = set()
                for p in head_dir.iterdir():
                    m = SPRITE_FILE_RE.match(p.name)
                    # files under 150/ must be named 150.<body>.png
                    if m and int(m.group(1)) == head_id:
                        bodies.add(int(m.group(2)))
                if bodies:
                    generated[head_id] = frozenset(bodies)
        else:
            logger.warning("Autogen sprites directory not found: %s", autogen_dir)

        return cls(frozenset(curated), generated, custom_dir, autogen_dir)


def _positive_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and value.strip().isdecimal():
        n = int(value.strip())
    else:
        return None
    return n if n >= 1 else None


def validate_ids(head_id, body_id) -> Tuple[int, int]:
    head, body = _positive_int(head_id), _positive_int(body_id)
    if head is None or body is None:
        raise InvalidParameterError(
            "headId and bodyId must be positive numbers",
            {"headId": head_id, "bodyId": body_id},
        )
    return head, body


class ImageResolver:
    """Maps a head/body pair to a sprite locator and its provenance."""

    def __init__(self, loader: Callable[[], SpriteIndex]):
        self._loader = loader
        self._index = SpriteIndex()
        self.refresh()

    @classmethod
    def from_dirs(cls, custom_dir: pathlib.Path, autogen_dir: pathlib.Path) -> "ImageResolver":
        return cls(lambda: SpriteIndex.scan(custom_dir, autogen_dir))

    @classmethod
    def from_index(cls, index: SpriteIndex) -> "ImageResolver":
        return cls(lambda: index)

    @property
    def index(self) -> SpriteIndex:
        return self._index

    def refresh(self) -> None:
        started = time.perf_counter()
        # single assignment; readers never see a partial index
        self._index = self._loader()
        logger.info(
            "Indexed %d custom sprites and %d autogen directories in %.1fms",
            len(self._index.curated), len(self._index.generated),
            (time.perf_counter() - started) * 1000,
        )

    def _attribution(self, head: int, body: int) -> Attribution:
        idx = self._index
        if (head, body) in idx.curated:
            return Attribution.CURATED
        if body in idx.generated.get(head, ()):
            return Attribution.GENERATED
        return Attribution.MISSING

    def resolve(self, head_id, body_id) -> ImageRef:
        head, body = validate_ids(head_id, body_id)
        attribution = self._attribution(head, body)
        if attribution is Attribution.CURATED:
            locator = CUSTOM_URL.format(head=head, body=body)
        elif attribution is Attribution.GENERATED:
            locator = AUTOGEN_URL.format(head=head, body=body)
        else:
            locator = MISSING_URL
        return ImageRef(locator=locator, attribution=attribution)

    def local_path(self, head_id, body_id) -> Optional[pathlib.Path]:
        head, body = validate_ids(head_id, body_id)
        idx = self._index
        attribution = self._attribution(head, body)
        if attribution is Attribution.CURATED and idx.custom_dir is not None:
            return idx.custom_dir / f"{head}.{body}.png"
        if attribution is Attribution.GENERATED and idx.autogen_dir is not None:
            return idx.autogen_dir / str(head) / f"{head}.{body}.png"
        return None


def type_icon_path(assets_dir: pathlib.Path, type_name: str) -> Optional[pathlib.Path]:
    if not isinstance(type_name, str) or not TYPE_NAME_RE.match(type_name):
        raise InvalidParameterError("Type name must be 3-15 letters only", {"typeName": type_name})
    p = assets_dir / "types" / f"{type_name.lower()}.png"
    return p if p.is_file() else None

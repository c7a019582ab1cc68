"""
nexus/app/centers.py

Static registry of enrollment centers.

Loaded once at startup from a JSON file:
    {"centers": [{"id": 5140, "short_name": "jfk", "full_name": "...", "address": "..."}]}
"""

import logging
from pathlib import Path

from aiogram.utils.text_decorations import markdown_decoration
from pydantic import BaseModel, ConfigDict, ValidationError

from nexus.app.errors import CenterNotFound, DecodeError

logger = logging.getLogger(__name__)


class Center(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    short_name: str
    full_name: str
    address: str

    def to_markdown(self) -> str:
        """Line used by /list and /status: `short` Full Name."""
        short = self.short_name.replace("\\", "\\\\").replace("`", "\\`")
        return f"`{short}` {markdown_decoration.quote(self.full_name)}"


class CentersConfig(BaseModel):
    centers: list[Center]


class CenterRegistry:
    """Read-only lookup over the configured centers."""

    def __init__(self, centers: list[Center]):
        self.centers = list(centers)
        self.lut: dict[int, Center] = {c.id: c for c in self.centers}

    @classmethod
    def from_file(cls, path: str | Path) -> "CenterRegistry":
        path = Path(path)
        if not path.exists():
            raise RuntimeError(f"centers file not found: {path}")

        try:
            config = CentersConfig.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise DecodeError(f"Invalid centers file {path}: {e}") from e

        logger.info(f"Loaded {len(config.centers)} centers from {path}")
        return cls(config.centers)

    def get(self, center_id: int) -> Center | None:
        return self.lut.get(center_id)

    def by_short_name(self, short_name: str) -> Center:
        for center in self.centers:
            if center.short_name == short_name:
                return center
        raise CenterNotFound()

    def markdown_lines(self, ids: list[int] | None = None) -> list[str]:
        """Sorted MarkdownV2 lines for the given ids (all centers if None)."""
        if ids is None:
            centers = self.centers
        else:
            centers = [self.lut[i] for i in ids if i in self.lut]
        return sorted(c.to_markdown() for c in centers)

"""
Capture Region
==============

Optional rectangle restricting capture to a sub-area of the screen.

A region is chosen once, before a sending session starts (by dragging a
selection or passing --region on the command line), and stays fixed for the
whole session.

Example:
    region = CaptureRegion.parse("100,200,640,480")
    region = CaptureRegion.from_corners(740, 680, 100, 200)

Note:
    All coordinates are in SCREEN SPACE (pixels), origin top-left of the
    captured monitor.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class CaptureRegion(BaseModel):
    """
    Screen rectangle to capture.

    Attributes:
        x: Left edge (pixels from the monitor's left)
        y: Top edge (pixels from the monitor's top)
        width: Width in pixels
        height: Height in pixels
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0, description="Left edge in pixels")
    y: int = Field(..., ge=0, description="Top edge in pixels")
    width: int = Field(..., gt=0, description="Width in pixels")
    height: int = Field(..., gt=0, description="Height in pixels")

    @classmethod
    def parse(cls, text: str) -> "CaptureRegion":
        """
        Parse an "x,y,width,height" string.

        Raises:
            ValueError: On malformed input or invalid dimensions
        """
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Region must be 'x,y,width,height', got {text!r}")
        try:
            x, y, width, height = (int(p) for p in parts)
        except ValueError:
            raise ValueError(f"Region values must be integers, got {text!r}") from None
        return cls(x=x, y=y, width=width, height=height)

    @classmethod
    def from_corners(cls, x0: float, y0: float, x1: float, y1: float) -> "CaptureRegion":
        """Build a region from two opposite corners given in any order."""
        left, right = sorted((x0, x1))
        top, bottom = sorted((y0, y1))
        return cls(
            x=int(round(left)),
            y=int(round(top)),
            width=int(round(right - left)),
            height=int(round(bottom - top)),
        )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def fits_within(self, screen_width: int, screen_height: int) -> bool:
        """Whether the region lies entirely within a screen of the given size."""
        return self.right <= screen_width and self.bottom <= screen_height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}+{self.x}+{self.y}"

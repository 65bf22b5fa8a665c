"""Popover form placement.

Places the add/edit form next to the control that opened it. Narrow
viewports get a fixed, full-width layout inset from the top-left corner;
wide viewports get the form directly below the control, centred on it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from catalog.config import settings


@dataclass(frozen=True)
class Rect:
    """Screen rectangle in CSS pixels, relative to the viewport."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    @classmethod
    def parse(cls, raw: str) -> "Rect":
        """Parse ``"left,top,right,bottom"``."""
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected left,top,right,bottom; got {raw!r}")
        left, top, right, bottom = (float(p) for p in parts)
        return cls(left, top, right, bottom)


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float = 800
    scroll_x: float = 0
    scroll_y: float = 0


def is_mobile(viewport: Viewport, breakpoint: int | None = None) -> bool:
    limit = settings.mobile_breakpoint if breakpoint is None else breakpoint
    return viewport.width < limit


@dataclass(frozen=True)
class FormPlacement:
    top: float = 0
    left: float = 0
    visible: bool = False
    is_add: bool = False
    is_mobile: bool = False

    def hidden(self) -> "FormPlacement":
        return replace(self, visible=False)

    def style(self) -> Dict[str, Any]:
        """Inline style for the form container."""
        inset = settings.form_inset
        if self.is_mobile:
            return {
                "position": "fixed",
                "top": f"{self.top:g}px",
                "left": f"{self.left:g}px",
                "right": f"{inset}px",
                "width": f"calc(100% - {2 * inset}px)",
                "transform": "none",
            }
        return {
            "position": "fixed",
            "top": f"{self.top:g}px",
            "left": f"{self.left:g}px",
            "right": "auto",
            "min-width": f"{settings.form_min_width}px",
            "max-width": "90vw",
            "transform": "translateX(-50%)",
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top": self.top,
            "left": self.left,
            "visible": self.visible,
            "is_add": self.is_add,
            "is_mobile": self.is_mobile,
            "style": self.style(),
        }


def compute_placement(trigger: Rect, viewport: Viewport, is_add: bool = False) -> FormPlacement:
    """Place a visible form for the control at ``trigger``."""
    mobile = is_mobile(viewport)
    if mobile:
        top = left = settings.form_inset
    else:
        top = trigger.bottom + viewport.scroll_y + settings.form_gap
        left = trigger.center_x + viewport.scroll_x
    return FormPlacement(top=top, left=left, visible=True, is_add=is_add, is_mobile=mobile)


def on_resize(placement: FormPlacement, viewport: Viewport) -> FormPlacement:
    """Refresh the layout mode of an open form; coordinates stay where they were."""
    if not placement.visible:
        return placement
    return replace(placement, is_mobile=is_mobile(viewport))

"""Client-side controller for the catalog page.

``BookManager`` owns the page state (book list, loading flag, sticky error,
form buffer, form placement) and exposes one coroutine or method per user
action. Views read ``manager.state`` and never mutate it directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from catalog.http_client import CatalogClient
from catalog.placement import FormPlacement, Rect, Viewport, compute_placement, on_resize

logger = logging.getLogger(__name__)

ADD_BUTTON_ID = "add-button"
DELETE_CONFIRMATION = "Are you sure you want to delete this book?"
FORM_FIELDS = ("title", "author", "genre")

# Network and decoding failures surface as a sticky error
_REQUEST_ERRORS = (httpx.HTTPError, ValueError)


def edit_button_id(book_id: int) -> str:
    return f"edit-{book_id}"


@dataclass
class FormBuffer:
    title: str = ""
    author: str = ""
    genre: str = ""

    @classmethod
    def from_book(cls, book: Dict[str, Any]) -> "FormBuffer":
        return cls(title=book["title"], author=book["author"], genre=book["genre"])

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "author": self.author, "genre": self.genre}


@dataclass
class ManagerState:
    books: List[Dict[str, Any]] = field(default_factory=list)
    loading: bool = True
    error: Optional[str] = None
    form: FormBuffer = field(default_factory=FormBuffer)
    placement: FormPlacement = field(default_factory=FormPlacement)
    current_book: Optional[Dict[str, Any]] = None


class BookManager:
    def __init__(self, client: CatalogClient) -> None:
        self.client = client
        self.state = ManagerState()
        # Controls that open the form, by id; clicks on them never count as outside clicks
        self.openers: Dict[str, Rect] = {}
        self.form_region: Optional[Rect] = None

    # ------------------------- Loading ------------------------- #
    async def load(self) -> None:
        """Fetch the full list. Any failure becomes the sticky page error."""
        try:
            data = await self.client.list_books()
            if data.get("success"):
                self.state.books = list(data.get("data") or [])
            else:
                self._fail(data.get("error") or "Failed to fetch books")
        except _REQUEST_ERRORS as e:
            self._fail(str(e))
        finally:
            self.state.loading = False

    def view(self) -> str:
        if self.state.loading:
            return "loading"
        if self.state.error:
            return "error"
        return "list"

    # ------------------------- Form ------------------------- #
    def open_for_create(self, trigger: Rect, viewport: Viewport) -> None:
        self.register_opener(ADD_BUTTON_ID, trigger)
        self.state.form = FormBuffer()
        self.state.current_book = None
        self.state.placement = compute_placement(trigger, viewport, is_add=True)

    def open_for_edit(self, book: Dict[str, Any], trigger: Rect, viewport: Viewport) -> None:
        self.register_opener(edit_button_id(book["id"]), trigger)
        self.state.form = FormBuffer.from_book(book)
        self.state.current_book = book
        self.state.placement = compute_placement(trigger, viewport)

    def update_field(self, name: str, value: str) -> None:
        if name not in FORM_FIELDS:
            raise ValueError(f"Unknown form field: {name}")
        setattr(self.state.form, name, value)

    def register_opener(self, control_id: str, rect: Rect) -> None:
        """Record an on-screen control that opens the form (add button, edit buttons)."""
        self.openers[control_id] = rect

    def set_form_region(self, region: Optional[Rect]) -> None:
        """Record where the view rendered the form, for outside-click detection."""
        self.form_region = region

    def resize(self, viewport: Viewport) -> None:
        self.state.placement = on_resize(self.state.placement, viewport)

    def dismiss(self) -> None:
        self.state.placement = self.state.placement.hidden()

    def pointer_down(self, x: float, y: float) -> bool:
        """Handle a pointer press anywhere on the page. Returns True if it closed the form."""
        if not self.state.placement.visible or self.form_region is None:
            return False
        if self.form_region.contains(x, y):
            return False
        if any(rect.contains(x, y) for rect in self.openers.values()):
            return False
        self.dismiss()
        return True

    # ------------------------- Mutations ------------------------- #
    async def submit(self) -> None:
        """Create or update from the form buffer, then reload and close the form."""
        current = self.state.current_book
        try:
            if current is not None:
                data = await self.client.update_book(current["id"], self.state.form.to_dict())
            else:
                data = await self.client.create_book(self.state.form.to_dict())
            if data.get("success"):
                await self.load()
                self.dismiss()
            else:
                action = "update" if current is not None else "add"
                self._fail(data.get("error") or f"Failed to {action} book")
        except _REQUEST_ERRORS as e:
            self._fail(str(e))

    async def delete(self, book_id: int, confirm: Callable[[str], bool]) -> bool:
        """Delete after confirmation. Returns True if the book was removed."""
        if not confirm(DELETE_CONFIRMATION):
            return False
        try:
            data = await self.client.delete_book(book_id)
            if data.get("success"):
                self.state.books = [b for b in self.state.books if b["id"] != book_id]
                return True
            self._fail(data.get("error") or "Failed to delete book")
        except _REQUEST_ERRORS as e:
            self._fail(str(e))
        return False

    def _fail(self, message: str) -> None:
        logger.warning(f"Catalog error: {message}")
        self.state.error = message

    async def close(self) -> None:
        await self.client.close()

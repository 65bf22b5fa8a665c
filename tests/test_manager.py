import asyncio

import httpx
import pytest

from catalog.http_client import CatalogClient
from catalog.manager import ADD_BUTTON_ID, DELETE_CONFIRMATION, BookManager, edit_button_id
from catalog.placement import Rect, Viewport

pytestmark = pytest.mark.integration

ADD_BUTTON = Rect(900, 20, 1040, 60)
EDIT_BUTTON = Rect(100, 200, 260, 230)
DESKTOP = Viewport(width=1200)


def _failing_manager(exc: Exception) -> BookManager:
    def handler(request):
        raise exc
    transport = httpx.MockTransport(handler)
    return BookManager(CatalogClient(base_url="http://testserver", transport=transport))


def _envelope_manager(status_code: int, body: dict) -> BookManager:
    transport = httpx.MockTransport(lambda request: httpx.Response(status_code, json=body))
    return BookManager(CatalogClient(base_url="http://testserver", transport=transport))


def test_load_populates_books(make_manager, lib):
    lib.add_book("Dune", "Herbert", "scifi")

    async def scenario():
        manager = make_manager()
        assert manager.view() == "loading"
        await manager.load()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.loading is False
    assert manager.state.error is None
    assert manager.view() == "list"
    assert [b["title"] for b in manager.state.books] == ["Dune"]


def test_load_network_failure_is_sticky():
    async def scenario():
        manager = _failing_manager(httpx.ConnectError("connection refused"))
        await manager.load()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.loading is False
    assert manager.state.error == "connection refused"
    assert manager.view() == "error"


def test_load_envelope_failure_uses_fallback_message():
    async def scenario():
        manager = _envelope_manager(500, {"success": False})
        await manager.load()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.error == "Failed to fetch books"


def test_open_for_create_resets_buffer():
    manager = _envelope_manager(200, {"success": True, "data": []})
    manager.state.form.title = "left over"
    manager.state.current_book = {"id": 1, "title": "x", "author": "y", "genre": "z"}

    manager.open_for_create(ADD_BUTTON, DESKTOP)

    assert manager.state.form.to_dict() == {"title": "", "author": "", "genre": ""}
    assert manager.state.current_book is None
    assert manager.state.placement.visible is True
    assert manager.state.placement.is_add is True
    assert manager.openers[ADD_BUTTON_ID] == ADD_BUTTON


def test_open_for_edit_fills_buffer_and_anchors_to_row():
    manager = _envelope_manager(200, {"success": True, "data": []})
    book = {"id": 7, "title": "Dune", "author": "Herbert", "genre": "scifi"}

    manager.open_for_edit(book, EDIT_BUTTON, DESKTOP)

    assert manager.state.form.to_dict() == {"title": "Dune", "author": "Herbert", "genre": "scifi"}
    assert manager.state.current_book is book
    assert manager.state.placement.is_add is False
    assert (manager.state.placement.top, manager.state.placement.left) == (238, 180)
    assert edit_button_id(7) in manager.openers


def test_update_field_rejects_unknown_names():
    manager = _envelope_manager(200, {"success": True, "data": []})
    manager.update_field("genre", "poetry")
    assert manager.state.form.genre == "poetry"
    with pytest.raises(ValueError):
        manager.update_field("id", "3")


def test_resize_while_open_switches_to_mobile():
    manager = _envelope_manager(200, {"success": True, "data": []})
    manager.open_for_create(ADD_BUTTON, DESKTOP)
    top = manager.state.placement.top

    manager.resize(Viewport(width=600))

    assert manager.state.placement.is_mobile is True
    assert manager.state.placement.top == top


def test_outside_pointer_down_dismisses():
    manager = _envelope_manager(200, {"success": True, "data": []})
    book = {"id": 7, "title": "Dune", "author": "Herbert", "genre": "scifi"}
    manager.open_for_edit(book, EDIT_BUTTON, DESKTOP)
    manager.set_form_region(Rect(30, 238, 330, 450))

    # Inside the form
    assert manager.pointer_down(100, 300) is False
    # On the add button, registered by an earlier open
    manager.register_opener(ADD_BUTTON_ID, ADD_BUTTON)
    assert manager.pointer_down(950, 40) is False
    assert manager.state.placement.visible is True

    assert manager.pointer_down(600, 600) is True
    assert manager.state.placement.visible is False
    # Already hidden
    assert manager.pointer_down(600, 600) is False


def test_pointer_down_on_another_edit_button_keeps_form_for_reopen():
    manager = _envelope_manager(200, {"success": True, "data": []})
    first = {"id": 1, "title": "A", "author": "a", "genre": "g"}
    second = {"id": 2, "title": "B", "author": "b", "genre": "g"}
    second_button = Rect(100, 260, 260, 290)
    manager.register_opener(edit_button_id(2), second_button)
    manager.open_for_edit(first, EDIT_BUTTON, DESKTOP)
    manager.set_form_region(Rect(30, 238, 330, 250))

    assert manager.pointer_down(150, 275) is False
    manager.open_for_edit(second, second_button, DESKTOP)
    assert manager.state.current_book is second
    assert manager.state.form.title == "B"


def test_submit_creates_and_reloads(make_manager):
    async def scenario():
        manager = make_manager()
        await manager.load()
        manager.open_for_create(ADD_BUTTON, DESKTOP)
        manager.update_field("title", "Dune")
        manager.update_field("author", "Herbert")
        manager.update_field("genre", "scifi")
        await manager.submit()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.error is None
    assert manager.state.placement.visible is False
    assert [(b["title"], b["author"], b["genre"]) for b in manager.state.books] == [("Dune", "Herbert", "scifi")]


def test_submit_updates_current_book(make_manager, lib):
    book = lib.add_book("Dune", "Herbert", "scifi")

    async def scenario():
        manager = make_manager()
        await manager.load()
        manager.open_for_edit(manager.state.books[0], EDIT_BUTTON, DESKTOP)
        manager.update_field("genre", "scifi-classic")
        await manager.submit()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.books == [{"id": book.id, "title": "Dune", "author": "Herbert", "genre": "scifi-classic"}]
    assert lib.find_book(book.id).genre == "scifi-classic"


def test_failed_submit_goes_to_error_screen(make_manager):
    async def scenario():
        manager = make_manager()
        await manager.load()
        manager.open_for_create(ADD_BUTTON, DESKTOP)
        manager.update_field("title", "Dune")
        await manager.submit()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.error == "Title, author and genre are required fields"
    assert manager.view() == "error"
    # The form is left open; only success closes it
    assert manager.state.placement.visible is True


def test_failed_update_without_message_uses_fallback():
    async def scenario():
        manager = _envelope_manager(404, {"success": False})
        manager.open_for_edit({"id": 3, "title": "t", "author": "a", "genre": "g"}, EDIT_BUTTON, DESKTOP)
        await manager.submit()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.error == "Failed to update book"


def test_delete_declined_does_nothing(make_manager, lib):
    book = lib.add_book("Dune", "Herbert", "scifi")
    prompts = []

    def decline(message):
        prompts.append(message)
        return False

    async def scenario():
        manager = make_manager()
        await manager.load()
        removed = await manager.delete(book.id, decline)
        await manager.close()
        return manager, removed

    manager, removed = asyncio.run(scenario())
    assert removed is False
    assert prompts == [DELETE_CONFIRMATION]
    assert len(manager.state.books) == 1
    assert lib.find_book(book.id) is not None


def test_delete_confirmed_removes_without_reload(make_manager, lib):
    keep = lib.add_book("Emma", "Austen", "classic")
    drop = lib.add_book("Dune", "Herbert", "scifi")

    async def scenario():
        manager = make_manager()
        await manager.load()
        # Added behind the manager's back; a reload would pick it up
        lib.add_book("Hidden", "Nobody", "none")
        removed = await manager.delete(drop.id, lambda message: True)
        await manager.close()
        return manager, removed

    manager, removed = asyncio.run(scenario())
    assert removed is True
    assert [b["id"] for b in manager.state.books] == [keep.id]
    assert lib.find_book(drop.id) is None


def test_delete_unknown_book_is_sticky(make_manager):
    async def scenario():
        manager = make_manager()
        await manager.load()
        removed = await manager.delete(4242, lambda message: True)
        await manager.close()
        return manager, removed

    manager, removed = asyncio.run(scenario())
    assert removed is False
    assert manager.state.error == "Book not found"
    assert manager.view() == "error"


def _raw_manager(content: bytes) -> BookManager:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, content=content, headers={"Content-Type": "application/json"})
    )
    return BookManager(CatalogClient(base_url="http://testserver", transport=transport))


@pytest.mark.parametrize("content", [b"null", b"[]", b"[\"not\", \"an\", \"envelope\"]"])
def test_non_object_response_is_sticky(content):
    async def scenario():
        manager = _raw_manager(content)
        await manager.load()
        await manager.close()
        return manager

    manager = asyncio.run(scenario())
    assert manager.state.loading is False
    assert manager.view() == "error"
    assert "Unexpected response body" in manager.state.error


def test_non_object_response_on_delete_is_sticky():
    async def scenario():
        manager = _raw_manager(b"null")
        removed = await manager.delete(1, lambda message: True)
        await manager.close()
        return manager, removed

    manager, removed = asyncio.run(scenario())
    assert removed is False
    assert manager.view() == "error"

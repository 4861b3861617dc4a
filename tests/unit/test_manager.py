import logging
import os

import pytest

from template_smd.config import EngineConfiguration
from template_smd.error.exceptions import (
    ConfigurationError,
    TemplateReadError,
    ValidationError,
)
from template_smd.templates.manager import Section, TemplateManager
from template_smd.templates.utils import resolve_template_path


def test_resolve_template_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert resolve_template_path("/abs/page.html", "views") == "/abs/page.html"
    assert resolve_template_path(" page.html ", "views") == os.path.join(os.getcwd(), "views", "page.html")
    assert resolve_template_path("page.html", "/srv/views") == "/srv/views/page.html"
    assert resolve_template_path("page.html") == os.path.join(os.getcwd(), "page.html")


@pytest.mark.parametrize("reference", ["", "   ", None, 42])
def test_resolve_template_path_rejects_bad_references(reference):
    with pytest.raises(ValidationError):
        resolve_template_path(reference)


def test_manager_example_from_docs():
    manager = TemplateManager()
    manager.register_partial("header", "<header>{{ title }}</header>")
    assert manager.render_string("<div>{{> header }}</div>", {"title": "Hello World"}) == (
        "<div><header>Hello World</header></div>"
    )


def test_register_partial_validation():
    manager = TemplateManager()
    with pytest.raises(ValidationError):
        manager.register_partial("  ", "x")
    with pytest.raises(ValidationError):
        manager.register_partial(None, "x")
    with pytest.raises(ValidationError):
        manager.register_partial("name", None)
    manager.register_partial("  padded ", "P")
    assert manager.render_string("{{> padded}}") == "P"


def test_folder_setters_normalize_and_validate():
    manager = TemplateManager()
    manager.set_base_template_folder("  /srv/views//  ")
    manager.set_partials_folder("parts\\")
    assert manager.base_template_folder == "/srv/views"
    assert manager.partials_folder == "parts"
    with pytest.raises(ValidationError):
        manager.set_base_template_folder(None)
    with pytest.raises(ValidationError):
        manager.set_partials_folder(3)


def test_manager_accepts_configuration_model():
    config = EngineConfiguration(max_partial_depth=3, enable_cache=False)
    manager = TemplateManager(config)
    assert manager.renderer.max_partial_depth == 3
    assert manager.cache.enabled is False


def test_manager_rejects_invalid_configuration():
    with pytest.raises(ConfigurationError):
        TemplateManager({"max_partial_depth": 0})


@pytest.mark.asyncio
async def test_render_file_with_partial_from_folder(manager, storage):
    await manager.register_partial_from_file("header")
    result = await manager.render_file("page.html", {"title": "<Docs>"})
    assert result == "<h1>&lt;Docs&gt;</h1><header>Home</header>"
    # partial and page were each read once
    assert storage.reads == 2


@pytest.mark.asyncio
async def test_render_file_uses_cache(manager, storage):
    await manager.render_file("page.html", {})
    await manager.render_file("page.html", {})
    assert storage.reads == 1

    manager.invalidate_template_cache("page.html")
    await manager.render_file("page.html", {})
    assert storage.reads == 2

    manager.clear_cache()
    assert len(manager.cache) == 0


@pytest.mark.asyncio
async def test_render_file_picks_up_changes(manager, template_dir, write_template):
    assert await manager.render_file("page.html", {"title": "A"}) == "<h1>A</h1>"
    write_template(template_dir / "page.html", "<h2>{{ title }}</h2>", 1_700_000_000)
    assert await manager.render_file("page.html", {"title": "A"}) == "<h2>A</h2>"


@pytest.mark.asyncio
async def test_render_file_missing_raises(manager):
    with pytest.raises(TemplateReadError):
        await manager.render_file("nope.html", {})


@pytest.mark.asyncio
async def test_register_partial_from_explicit_path(manager, template_dir):
    text = await manager.register_partial_from_file("head", str(template_dir / "partials" / "header.html"))
    assert "<header>" in text
    assert manager.render_string("{{> head}}", {"site": "S"}) == "<header>S</header>"


@pytest.mark.asyncio
async def test_register_partial_from_file_requires_location():
    manager = TemplateManager()
    with pytest.raises(ConfigurationError):
        await manager.register_partial_from_file("header")


@pytest.mark.asyncio
async def test_render_dispatches_on_suffix(manager):
    assert await manager.render(" page.html ", {"title": "T"}) == "<h1>T</h1>"
    assert await manager.render("<b>{{ title }}</b>", {"title": "T"}) == "<b>T</b>"
    assert await manager.render(None, {}) == ""


@pytest.mark.asyncio
async def test_render_multiple_joins_in_order(manager):
    result = await manager.render_multiple(
        [
            {"template": "<a>{{ x }}</a>", "context": {"x": 1}},
            {"file": "page.html", "bindings": {"title": "P"}},
            Section(template="<c/>"),
        ]
    )
    assert result == "<a>1</a><h1>P</h1><c/>"


@pytest.mark.asyncio
async def test_render_multiple_validates_input(manager):
    with pytest.raises(ValidationError):
        await manager.render_multiple("page.html")
    with pytest.raises(ValidationError):
        await manager.render_multiple([{"context": {}}])
    with pytest.raises(ValidationError):
        await manager.render_multiple([{"template": ""}])
    assert await manager.render_multiple([]) == ""


@pytest.mark.asyncio
async def test_render_multiple_propagates_read_failures(manager):
    with pytest.raises(TemplateReadError):
        await manager.render_multiple([{"template": "ok"}, {"file": "missing.html"}])


@pytest.mark.asyncio
async def test_unbalanced_blocks_render_as_text(manager, caplog):
    with caplog.at_level(logging.WARNING, logger="template_smd"):
        assert TemplateManager().render_string("{{#if a}}never closed {{ a }}", {"a": 1}) == (
            "{{#if a}}never closed 1"
        )
        result = await manager.render_multiple(
            [{"template": "a {{/if}} b"}, {"template": "{{#each xs}}{{/if}}", "context": {"xs": [1]}}]
        )
    assert result == "a {{/if}} b{{#each xs}}{{/if}}"
    assert "Unclosed {{#if a}}" in caplog.text
    assert "Unexpected {{/if}}" in caplog.text

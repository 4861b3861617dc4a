"""Pytest configuration and fixtures."""
import os
import pytest
from pathlib import Path

from template_smd.templates.manager import TemplateCache, TemplateManager, read_text, stat_fingerprint
from template_smd.templates.registry import PartialRegistry
from template_smd.templates.renderer import Renderer


class CountingStorage:
    """Wraps the real stat/read functions and counts storage reads."""

    def __init__(self):
        self.reads = 0
        self.stats = 0

    async def stat(self, path: str):
        self.stats += 1
        return await stat_fingerprint(path)

    async def read(self, path: str, encoding: str = "utf-8") -> str:
        self.reads += 1
        return await read_text(path, encoding)


def touch(path: Path, content: str, mtime: float) -> Path:
    """Write *content* and pin the modification time."""
    path.write_text(content, encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def write_template():
    return touch


@pytest.fixture
def partials():
    return PartialRegistry()


@pytest.fixture
def renderer(partials):
    return Renderer(partials)


@pytest.fixture
def storage():
    return CountingStorage()


@pytest.fixture
def cache(storage):
    return TemplateCache(stat_func=storage.stat, read_func=storage.read)


@pytest.fixture
def template_dir(tmp_path):
    """Create a template folder with a page and a partials folder."""
    views = tmp_path / "views"
    (views / "partials").mkdir(parents=True)
    touch(views / "page.html", "<h1>{{ title }}</h1>{{> header}}", 1_600_000_000)
    touch(views / "partials" / "header.html", "<header>{{ site || \"Home\" }}</header>", 1_600_000_000)
    return views


@pytest.fixture
def manager(template_dir, cache):
    return TemplateManager(
        {"base_folder": str(template_dir), "partials_folder": str(template_dir / "partials")},
        cache=cache,
    )

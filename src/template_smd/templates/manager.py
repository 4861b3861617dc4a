"""
Template manager with a modification-time file cache, partial registration
and string, file and multi-section rendering.
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

import aiofiles
import aiofiles.os
import pydantic
from pydantic import AliasChoices, BaseModel, Field, model_validator

from ..config.configuration import EngineConfiguration, ensure_engine_config
from ..error.exceptions import ConfigurationError, ErrorContext, TemplateReadError, ValidationError
from .registry import PartialRegistry
from .renderer import Renderer
from .utils import resolve_template_path

logger = logging.getLogger(__name__)

StatFunc = Callable[[str], Awaitable[Any]]
ReadFunc = Callable[[str, str], Awaitable[str]]


async def stat_fingerprint(path: str) -> int:
    """Modification fingerprint of *path* (nanosecond mtime)."""
    stats = await aiofiles.os.stat(path)
    return stats.st_mtime_ns


async def read_text(path: str, encoding: str = "utf-8") -> str:
    """Read a whole text file."""
    async with aiofiles.open(path, mode='r', encoding=encoding) as f:
        return await f.read()


@dataclass(frozen=True)
class CacheEntry:
    content: str
    fingerprint: Any


class TemplateCache:
    """
    Cache of template file contents keyed by absolute path.

    An entry is reused while the file's modification fingerprint is
    unchanged. With ``dedupe_inflight`` concurrent first reads of the same
    path share one pending load; otherwise each caller may read the file.
    """

    def __init__(
        self,
        enabled: bool = True,
        dedupe_inflight: bool = False,
        encoding: str = "utf-8",
        stat_func: Optional[StatFunc] = None,
        read_func: Optional[ReadFunc] = None,
    ):
        """
        Initialize template cache.

        Args:
            enabled: When False every read goes to storage and nothing is stored
            dedupe_inflight: Share one pending load per path between concurrent callers
            encoding: Text encoding of template files
            stat_func: Async ``path -> fingerprint`` function
            read_func: Async ``(path, encoding) -> text`` function
        """
        self.enabled = enabled
        self.dedupe_inflight = dedupe_inflight
        self.encoding = encoding
        self._stat = stat_func or stat_fingerprint
        self._read = read_func or read_text
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Future] = {}

    @classmethod
    def from_config(cls, config: EngineConfiguration, **kwargs) -> "TemplateCache":
        return cls(
            enabled=config.enable_cache,
            dedupe_inflight=config.dedupe_inflight,
            encoding=config.encoding,
            **kwargs,
        )

    async def read(self, absolute_path: str) -> str:
        """
        Return the content of *absolute_path*, from cache when still fresh.

        Raises:
            TemplateReadError: If the file cannot be stat'ed, read or decoded
        """
        key = str(absolute_path)
        if not self.enabled:
            return await self._read_uncached(key)
        if not self.dedupe_inflight:
            return await self._load(key)

        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._load(key))
            self._inflight[key] = pending

            def _forget(fut: asyncio.Future) -> None:
                if self._inflight.get(key) is fut:
                    del self._inflight[key]

            pending.add_done_callback(_forget)
        else:
            logger.debug(f"Joining in-flight load of {key}")
        return await asyncio.shield(pending)

    async def _read_uncached(self, key: str) -> str:
        try:
            return await self._read(key, self.encoding)
        except (OSError, ValueError) as e:
            raise TemplateReadError(key, str(e), ErrorContext("TemplateCache", "read")) from e

    async def _load(self, key: str) -> str:
        cached = self._entries.get(key)
        try:
            fingerprint = await self._stat(key)
            if cached is not None and cached.fingerprint == fingerprint:
                logger.debug(f"Template cache hit: {key}")
                return cached.content
            content = await self._read(key, self.encoding)
        except (OSError, ValueError) as e:
            self._entries.pop(key, None)
            raise TemplateReadError(key, str(e), ErrorContext("TemplateCache", "read")) from e

        logger.debug(f"Template cache {'refresh' if cached else 'miss'}: {key}")
        self._entries[key] = CacheEntry(content, fingerprint)
        return content

    def invalidate(self, absolute_path: str) -> bool:
        """Drop the entry for one path. Returns True if an entry existed."""
        return self._entries.pop(str(absolute_path), None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        logger.debug("Invalidated entire template cache")

    def __contains__(self, absolute_path: object) -> bool:
        return str(absolute_path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class Section(BaseModel):
    """One independently rendered section of ``render_multiple``."""
    file: Optional[str] = None
    template: Optional[str] = None
    context: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("context", "bindings"),
    )

    @model_validator(mode="after")
    def check_source(self) -> "Section":
        if not (self.file and self.file.strip()) and not self.template:
            raise ValueError('Each section must have either a "file" or "template" property.')
        return self


class TemplateManager:
    """
    Public entry point: renders inline strings and template files,
    manages partials and the file cache.
    """

    def __init__(
        self,
        config: Optional[Union[EngineConfiguration, Dict[str, Any]]] = None,
        *,
        partials: Optional[PartialRegistry] = None,
        cache: Optional[TemplateCache] = None,
    ):
        """
        Initialize template manager.

        Args:
            config: Engine configuration (model or plain dict)
            partials: Partial registry to use; a new one is created if omitted
            cache: File cache to use; built from the configuration if omitted
        """
        self.config = ensure_engine_config(config)
        self.partials = partials if partials is not None else PartialRegistry()
        self.cache = cache if cache is not None else TemplateCache.from_config(self.config)
        self.renderer = Renderer(self.partials, max_partial_depth=self.config.max_partial_depth)

    # Configuration ---------------------------------------------------------

    @property
    def base_template_folder(self) -> str:
        return self.config.base_folder

    @property
    def partials_folder(self) -> str:
        return self.config.partials_folder

    def set_base_template_folder(self, folder_path: str) -> None:
        """
        Set the folder relative template paths resolve against.

        Raises:
            ValidationError: If folder_path is not a string
        """
        if not isinstance(folder_path, str):
            raise ValidationError(
                "Base folder must be a string.",
                ErrorContext("TemplateManager", "set_base_template_folder"),
            )
        self.config.base_folder = folder_path

    def set_partials_folder(self, folder_path: str) -> None:
        """
        Set the folder ``register_partial_from_file`` looks in.

        Raises:
            ValidationError: If folder_path is not a string
        """
        if not isinstance(folder_path, str):
            raise ValidationError(
                "Partials folder must be a string.",
                ErrorContext("TemplateManager", "set_partials_folder"),
            )
        self.config.partials_folder = folder_path

    def resolve_path(self, file_path: str) -> str:
        return resolve_template_path(file_path, self.config.base_folder)

    # Partials --------------------------------------------------------------

    def register_partial(self, name: str, template: str) -> None:
        """Register a partial under *name* (trimmed)."""
        self.partials.register(name, template)

    async def register_partial_from_file(self, name: str, file_path: Optional[str] = None) -> str:
        """
        Register a partial read from a file.

        Without *file_path*, ``<partials_folder>/<name><template_suffix>`` is used.

        Returns:
            The partial's text

        Raises:
            ConfigurationError: If neither a partials folder nor a path is available
            TemplateReadError: If the file cannot be read
        """
        if not self.config.partials_folder and not file_path:
            raise ConfigurationError(
                "Set a partials folder or provide an explicit file path.",
                ErrorContext("TemplateManager", "register_partial_from_file", name=name),
            )
        target = file_path or os.path.join(
            self.config.partials_folder, f"{name}{self.config.template_suffix}"
        )
        template = await self.cache.read(self.resolve_path(target))
        self.register_partial(name, template)
        return template

    # Cache -----------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()

    def invalidate_template_cache(self, file_path: str) -> None:
        """Drop the cached content of one template file."""
        self.cache.invalidate(self.resolve_path(file_path))

    # Rendering -------------------------------------------------------------

    def render_string(self, template: Any, context: Optional[Mapping[str, Any]] = None) -> str:
        """Render an inline template string."""
        return self.renderer.render_string(template, context or {})

    async def render_file(self, file_path: str, context: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render a template file.

        Raises:
            ValidationError: If file_path is empty or not a string
            TemplateReadError: If the file cannot be read
        """
        absolute_path = self.resolve_path(file_path)
        try:
            template = await self.cache.read(absolute_path)
        except TemplateReadError as e:
            logger.error(f"Failed to read template {absolute_path}: {e}", extra={"template": absolute_path})
            raise
        return self.render_string(template, context)

    def looks_like_file(self, template_or_file: Any) -> bool:
        return (
            isinstance(template_or_file, str)
            and template_or_file.strip().endswith(self.config.template_suffix)
        )

    async def render(self, template_or_file: Any, context: Optional[Mapping[str, Any]] = None) -> str:
        """Render a file reference (ends with the template suffix) or an inline string."""
        if self.looks_like_file(template_or_file):
            return await self.render_file(template_or_file, context)
        return self.render_string(template_or_file, context)

    async def render_multiple(self, sections: Sequence[Union[Section, Mapping[str, Any]]]) -> str:
        """
        Render sections concurrently and concatenate them in order.

        Raises:
            ValidationError: If sections is not a list or a section has no source
            TemplateReadError: If a file section cannot be read
        """
        if not isinstance(sections, (list, tuple)):
            raise ValidationError(
                "render_multiple expects a list of sections.",
                ErrorContext("TemplateManager", "render_multiple"),
            )

        parsed: List[Section] = []
        for index, section in enumerate(sections):
            if isinstance(section, Section):
                parsed.append(section)
                continue
            try:
                parsed.append(Section.model_validate(section))
            except pydantic.ValidationError as e:
                raise ValidationError(
                    f"Invalid section at index {index}: {e.errors()[0]['msg']}",
                    ErrorContext("TemplateManager", "render_multiple", index=index),
                ) from e

        async def _render_section(section: Section) -> str:
            if section.file and section.file.strip():
                return await self.render_file(section.file, section.context)
            return self.render_string(section.template, section.context)

        results = await asyncio.gather(*(_render_section(s) for s in parsed))
        return "".join(results)

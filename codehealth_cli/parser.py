"""Tree-sitter parsing of JavaScript / TypeScript sources into :class:`SourceFile` objects.

Tree-sitter produces a concrete syntax tree with parent links, which is all
the reachability engine needs to walk from a call site up to its enclosing
declaration. Grammars come from the per-language ``tree-sitter-*`` packages.
"""

from __future__ import annotations

import importlib
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .discovery import language_for
from .models import SourceFile

logger = logging.getLogger(__name__)


class ParseFailure(Exception):
    """A file could not be read or parsed. Recovered by skipping the file."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SourceParser:
    """Parses files with the Tree-sitter grammar matching their extension.

    Grammars are loaded once; a missing grammar package disables that
    language and every file in it raises :class:`ParseFailure`.
    """

    # Map language name -> (module providing the grammar, function returning the capsule)
    _GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
        "javascript": ("tree_sitter_javascript", "language"),
        "typescript": ("tree_sitter_typescript", "language_typescript"),
        "tsx": ("tree_sitter_typescript", "language_tsx"),
    }

    def __init__(self, project_root: Path) -> None:
        self.project_root = Path(project_root).resolve()
        self._languages: Dict[str, Any] = {}
        self._init_languages()

    def _init_languages(self) -> None:
        from tree_sitter import Language

        for lang, (mod_name, func_name) in self._GRAMMAR_MODULES.items():
            try:
                mod = importlib.import_module(mod_name)
                self._languages[lang] = Language(getattr(mod, func_name)())
                logger.debug("Loaded tree-sitter grammar for %s", lang)
            except ImportError:
                logger.warning(
                    "Grammar package '%s' not installed for language '%s'. "
                    "Install with: pip install %s",
                    mod_name, lang, mod_name.replace("_", "-"),
                )

    def supports_language(self, language: str) -> bool:
        return language in self._languages

    def _parser_for(self, language: str) -> Any:
        from tree_sitter import Parser as TSParser

        # A tree-sitter Parser is not safe to share between threads; they are cheap to build.
        return TSParser(self._languages[language])

    def relative_path(self, file_path: Path) -> str:
        try:
            return file_path.resolve().relative_to(self.project_root).as_posix()
        except ValueError:
            return file_path.resolve().as_posix()

    def parse_file(self, file_path: Path, source: Optional[bytes] = None) -> SourceFile:
        """Parse one file. Raises :class:`ParseFailure` when it cannot be analyzed."""
        file_path = Path(file_path)
        lang = language_for(file_path)
        if lang is None:
            raise ParseFailure(file_path, "unsupported file type")
        if not self.supports_language(lang):
            raise ParseFailure(file_path, f"no grammar loaded for {lang}")

        if source is None:
            try:
                source = file_path.read_bytes()
            except OSError as exc:
                raise ParseFailure(file_path, f"unreadable ({exc})") from exc

        tree = self._parser_for(lang).parse(source)
        if tree.root_node.has_error:
            raise ParseFailure(file_path, "syntax error")

        return SourceFile(
            path=file_path.resolve(),
            rel_path=self.relative_path(file_path),
            language=lang,
            source=source,
            tree=tree,
        )

    def _try_parse(self, file_path: Path) -> Optional[SourceFile]:
        try:
            return self.parse_file(file_path)
        except ParseFailure as exc:
            logger.warning("Skipping %s", exc)
            return None

    def parse_files(self, paths: Iterable[Path], workers: int = 1) -> List[SourceFile]:
        """Parse *paths*, skipping failures. Output keeps input order."""
        paths = list(paths)
        if workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                parsed = list(executor.map(self._try_parse, paths))
        else:
            parsed = [self._try_parse(p) for p in paths]
        return [sf for sf in parsed if sf is not None]

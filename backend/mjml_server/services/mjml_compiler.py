"""
MJML Server — `mjml` Package Compiler Implementation
======================================================

What:  Concrete MarkupCompiler backed by the `mjml` Python distribution.
Why:   A pure-Python MJML engine: no Node.js runtime or subprocess needed.
How:   Feeds the markup to `mjml.mjml_to_html` as a named text stream and
       turns the engine's complaints into Diagnostic values.

Rejected markup:
    The engine parses with BeautifulSoup's lenient `html.parser`, so there
    are no XML syntax errors. It reports bad documents by raising instead:

        KeyError('mj-foo')                  → unknown element, tag=mj-foo
        ValueError("could not parse ...")   → no <mjml> root element
        ValueError('Did not find <mj-body>!')
        FileNotFoundError                   → <mj-include> target missing

    Each of these becomes a single diagnostic, so the client sees a
    COMPILATION_ERROR instead of a 500. Any other exception propagates.

    The `errors` list of the result is still normalized (strings, dicts or
    objects) for engine releases that report soft validation errors.
"""

import io
import logging
from importlib import metadata
from typing import Any, Iterable, List, Optional, Tuple

from mjml import mjml_to_html

from mjml_server.services.compiler_base import CompilationResult, Diagnostic, MarkupCompiler

logger = logging.getLogger(__name__)


class _MarkupSource(io.StringIO):
    # The engine names the stream in its "could not parse" error
    name = "markup"


class MjmlCompiler(MarkupCompiler):
    """
    MJML engine adapter.

    Stateless apart from its options, so a single instance is shared by all
    requests and all worker threads.
    """

    def __init__(self, template_dir: Optional[str] = None):
        """
        Args:
            template_dir: Base directory for resolving <mj-include> paths.
                          None resolves them against the working directory.
        """
        self.template_dir = template_dir
        self._version = _installed_version("mjml")
        logger.info(
            "MjmlCompiler initialized with mjml=%s, template_dir=%s",
            self._version,
            template_dir or "-",
        )

    @property
    def version(self) -> str:
        return self._version

    def compile(self, markup: str) -> CompilationResult:
        options = {"template_dir": self.template_dir} if self.template_dir else {}
        try:
            result = mjml_to_html(_MarkupSource(markup), **options)
        except KeyError as exc:
            element = exc.args[0] if exc.args else "?"
            return _rejected(
                Diagnostic(
                    message=f"Element {element} doesn't exist or is not registered",
                    tag=str(element),
                )
            )
        except FileNotFoundError as exc:
            return _rejected(
                Diagnostic(message=f"Included file not found: {exc.filename}", tag="mj-include")
            )
        except ValueError as exc:
            return _rejected(Diagnostic(message=f"Malformed MJML: {exc}", tag="mjml"))

        html = _field(result, "html")
        diagnostics = _normalize_errors(_field(result, "errors") or ())
        return CompilationResult(html=html, diagnostics=diagnostics)


def _rejected(diagnostic: Diagnostic) -> CompilationResult:
    logger.debug("MJML rejected by engine: %s", diagnostic.message)
    return CompilationResult(html=None, diagnostics=(diagnostic,))


def _field(result: Any, name: str) -> Any:
    # ParseResult is a named tuple; older releases returned a DotMap (a dict)
    if isinstance(result, dict):
        return result.get(name)
    return getattr(result, name, None)


def _normalize_errors(errors: Iterable[Any]) -> Tuple[Diagnostic, ...]:
    diagnostics: List[Diagnostic] = []
    for error in errors:
        if isinstance(error, Diagnostic):
            diagnostics.append(error)
        elif isinstance(error, str):
            diagnostics.append(Diagnostic(message=error))
        else:
            diagnostics.append(
                Diagnostic(
                    message=str(_field(error, "message") or _field(error, "formattedMessage") or error),
                    line=_as_line(_field(error, "line")),
                    tag=_field(error, "tagName") or _field(error, "tag") or None,
                )
            )
    return tuple(diagnostics)


def _as_line(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _installed_version(distribution: str) -> str:
    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return "unknown"

"""
MJML Server — Abstract Markup Compiler Interface
==================================================

What:  Abstract base class defining the contract for MJML → HTML compilers.
Why:   RenderService only depends on this contract, so the engine behind it
       (the `mjml` Python package today) can be swapped or stubbed in tests.
How:   Concrete implementations inherit from MarkupCompiler and implement compile().
Who:   Called by RenderService, once per document.

Contract:
    compile(markup) -> CompilationResult(html, diagnostics)

    - Problems the engine can describe (unknown tags, invalid attributes,
      a missing <mjml> root or <mj-body>) come back as diagnostics, not as
      exceptions.
    - Anything else may raise; the caller is responsible for catching it.
    - compile() is synchronous and CPU-bound. RenderService runs it in a
      worker thread.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Diagnostic:
    """A structured compilation problem: where, what, and on which tag."""

    message: str
    line: Optional[int] = None
    tag: Optional[str] = None


@dataclass(frozen=True)
class CompilationResult:
    """
    What the compiler returned for one document.

    `html` may be non-empty even when `diagnostics` is not (soft validation
    produces best-effort output); callers decide what to do with it.
    """

    html: Optional[str] = None
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class MarkupCompiler(ABC):
    """Converts MJML markup into an HTML email document."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Version string of the underlying engine, reported by GET /info."""
        ...

    @abstractmethod
    def compile(self, markup: str) -> CompilationResult:
        """
        Compile one MJML document.

        Args:
            markup: Complete MJML document text (already size-checked).

        Returns:
            CompilationResult with the HTML and any diagnostics.
        """
        ...

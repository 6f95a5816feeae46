"""Adapt a ServiceResult to the requested output mode.

- ``--json``: the full result as JSON.
- ``--quiet``: one status line, or card IDs for list results.
- default: rich renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from binderctl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from binderctl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)

from __future__ import annotations

import re
from dataclasses import dataclass

from compiler import BuildStats

SYNTAX_ERROR_LABEL = "Syntax error:"
STACK_FRAME_RE = re.compile(r"^\s*at\s.*:\d+:\d+[\s)]*$")
MODULE_NOISE_RE = re.compile(r"^Module (Error|Warning) \(from .*\):?$")
BLANK_RUN_RE = re.compile(r"\n{3,}")


@dataclass
class FormattedMessages:
    errors: list[str]
    warnings: list[str]


def format_message(message: str) -> str:
    """Strip bundler noise from a single diagnostic."""
    lines = []
    for line in message.splitlines():
        if STACK_FRAME_RE.match(line) or MODULE_NOISE_RE.match(line.strip()):
            continue
        line = line.replace("Module build failed: ", "")
        line = line.replace("SyntaxError:", SYNTAX_ERROR_LABEL)
        lines.append(line.rstrip())
    text = "\n".join(lines)
    return BLANK_RUN_RE.sub("\n\n", text).strip()


def is_syntax_error(message: str) -> bool:
    return SYNTAX_ERROR_LABEL in message


def format_messages(stats: BuildStats) -> FormattedMessages:
    """Format build diagnostics for display.

    When syntax errors are present only those are kept, since other
    errors in the same build are usually caused by them.
    """
    errors = [format_message(e) for e in stats.errors]
    warnings = [format_message(w) for w in stats.warnings]

    if any(is_syntax_error(e) for e in errors):
        errors = [e for e in errors if is_syntax_error(e)]

    return FormattedMessages(errors=errors, warnings=warnings)

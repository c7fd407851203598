"""flashcard adapter: cards embedded in plain-text notes.

Syntax:
    prompt : response #flashcard #tag     - one-line card
    prompt : response 🧠 #tag             - one-line card, emoji marker

    prompt #flashcard #tag                - multi-line card; the response is
    response line 1                         every line up to a separator
    response line 2                         (---, - - -, ***, * * *)
    ---

Tags are ``#word`` tokens (letters, digits, _ and -) after the prompt;
``flashcard`` itself is never a tag. A file containing ``@recall-ignore``
yields no cards. Empty prompts and unterminated multi-line cards are skipped
with a warning.
"""

import re
import sys
from dataclasses import dataclass, field

from recall.models import CardCandidate, SourceLocation

IGNORE_MARKER = "@recall-ignore"

_CARD_RE = re.compile(r"#flashcard|🧠")
_ONE_LINE_RE = re.compile(r"^(.*):(.*)")
_MULTI_LINE_RE = re.compile(r"#flashcard")
_TAG_RE = re.compile(r"#([\w-]+)")
_END_OF_CARD_RE = re.compile(r"^(\s*---\s*|\s*-\s*-\s*-\s*|\s*\*\*\*\s*|\s*\*\s*\*\s*\*\s*)$")


def parse_tags(text: str) -> set[str]:
    tags = set(_TAG_RE.findall(text))
    tags.discard("flashcard")
    return tags


def strip_tags(text: str) -> str:
    """Everything before the first tag or marker, trimmed."""
    return re.split(r"[#🧠]", text, maxsplit=1)[0].strip()


@dataclass
class _OpenCard:
    prompt: str
    first_line: int
    tags: set[str]
    lines: list[str] = field(default_factory=list)


def _warn(path: str, line: int, reason: str):
    print(f"Warning: skipping malformed card at {path}:{line + 1}: {reason}", file=sys.stderr)


class Adapter:
    def parse(self, text: str, path: str, config: dict):
        """Yield a CardCandidate for every card in ``text``."""
        if IGNORE_MARKER in text:
            return
        current: _OpenCard | None = None
        for line_number, line in enumerate(text.splitlines()):
            if _CARD_RE.search(line):
                if current is not None:
                    _warn(path, current.first_line, "no separator before next card")
                    current = None
                one_line = _ONE_LINE_RE.match(line)
                if one_line:
                    prompt = one_line.group(1).strip()
                    if not prompt:
                        _warn(path, line_number, "empty prompt")
                        continue
                    answer = one_line.group(2)
                    yield CardCandidate(
                        prompt=prompt,
                        response=strip_tags(answer),
                        tags=parse_tags(answer),
                        source_location=SourceLocation(path, line_number, line_number),
                    )
                elif _MULTI_LINE_RE.search(line):
                    prompt = strip_tags(line)
                    if not prompt:
                        _warn(path, line_number, "empty prompt")
                        continue
                    current = _OpenCard(prompt=prompt, first_line=line_number,
                                        tags=parse_tags(line))
            elif current is not None and _END_OF_CARD_RE.match(line):
                yield CardCandidate(
                    prompt=current.prompt,
                    response="\n".join(current.lines),
                    tags=current.tags,
                    source_location=SourceLocation(path, current.first_line, line_number),
                )
                current = None
            elif current is not None:
                current.lines.append(line)
        if current is not None:
            _warn(path, current.first_line, "missing separator")

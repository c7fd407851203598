"""Source scanning: find note files, extract card candidates, hash card identity."""

import hashlib
import json
import pathlib
import sys
from collections.abc import Iterable

from recall.errors import MalformedCandidate
from recall.models import CardCandidate

DEFAULT_FILE_TYPES = ("md", "txt", "org")


def content_hash(content: dict) -> str:
    return hashlib.sha256(
        json.dumps(content, sort_keys=True, ensure_ascii=False).encode()).hexdigest()


def normalize_tags(tags: Iterable[str]) -> list[str]:
    return sorted({t.strip().lower() for t in tags if t.strip()})


def card_id(candidate: CardCandidate) -> str:
    """Content-derived card identity.

    Prompt and response are whitespace-trimmed; tags are lower-cased and
    sorted, so tag order never matters but tag membership does.
    """
    prompt = candidate.prompt.strip()
    if not prompt:
        raise MalformedCandidate(f"empty prompt at {candidate.source_location.file_path}:"
                                 f"{candidate.source_location.line_start}")
    return content_hash({
        "prompt": prompt,
        "response": candidate.response.strip(),
        "tags": normalize_tags(candidate.tags),
    })


def scan_sources(paths: list[pathlib.Path], adapter,
                 file_types: Iterable[str] = DEFAULT_FILE_TYPES
                 ) -> tuple[list[CardCandidate], set[str]]:
    """Scan paths for card candidates.

    Args:
        paths: File/directory paths to scan.
        adapter: Object with ``parse(text, path, config)`` yielding CardCandidates.
        file_types: Extensions (without dot) of files to read.

    Returns (candidates, scanned_files). ``scanned_files`` holds every file
    that was read, including those that yielded no cards.
    """
    suffixes = {"." + ft.lstrip(".").lower() for ft in file_types}
    candidates: list[CardCandidate] = []
    seen_paths: set[str] = set()

    for path in paths:
        path = path.resolve()
        if path.is_file():
            _scan_file(path, adapter, candidates, seen_paths)
        elif path.is_dir():
            _scan_directory(path, adapter, suffixes, candidates, seen_paths)
        else:
            print(f"Warning: {path} does not exist", file=sys.stderr)

    return candidates, seen_paths


def _scan_file(path: pathlib.Path, adapter, candidates: list, seen_paths: set):
    if str(path) in seen_paths:
        return
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Warning: cannot read {path}: {e}", file=sys.stderr)
        return
    seen_paths.add(str(path))
    candidates.extend(adapter.parse(text, str(path), {}))


def _scan_directory(dirpath: pathlib.Path, adapter, suffixes: set[str],
                    candidates: list, seen_paths: set):
    try:
        entries = sorted(dirpath.iterdir())
    except PermissionError:
        return
    for item in entries:
        if item.name.startswith("."):
            continue
        if item.is_dir():
            _scan_directory(item, adapter, suffixes, candidates, seen_paths)
        elif item.is_file() and item.suffix.lower() in suffixes:
            _scan_file(item, adapter, candidates, seen_paths)

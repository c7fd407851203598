"""Candidate extractors.

An extractor ("adapter") is a class named ``Adapter`` whose
``parse(text, path, config)`` yields ``recall.models.CardCandidate`` objects.
``flashcard`` ships with recall; a file ``<recall_dir>/adapters/<name>.py``
replaces the shipped extractor of the same name or adds a new one.
"""

import importlib
import importlib.util
import pathlib

BUILTIN_ADAPTERS = {
    "flashcard": "recall.adapters.flashcard",
}


def _user_adapter_module(path: pathlib.Path, name: str):
    spec = importlib.util.spec_from_file_location(f"recall_user_adapter_{name}", str(path))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def load_adapter(name: str, recall_dir: pathlib.Path | None = None):
    """Instantiate the extractor called ``name``.

    Raises FileNotFoundError when neither ``recall_dir`` nor the built-ins
    provide it.
    """
    user_file = recall_dir / "adapters" / f"{name}.py" if recall_dir is not None else None
    if user_file is not None and user_file.is_file():
        module = _user_adapter_module(user_file, name)
    elif name in BUILTIN_ADAPTERS:
        module = importlib.import_module(BUILTIN_ADAPTERS[name])
    else:
        known = ", ".join(sorted(BUILTIN_ADAPTERS))
        raise FileNotFoundError(f"No adapter named {name!r} (built-in: {known})")
    return module.Adapter()

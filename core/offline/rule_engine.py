"""
Deterministic commit messages built from file paths and statuses alone.

This is the generator used when no backend is configured and the fallback
for every backend failure, so it never touches the network or the diff.
"""
from collections import Counter
from typing import List, Optional, Sequence

from core.contracts.models import ChangeFile, CommitMessage, MAX_TITLE_LENGTH

FIX_KEYWORDS = ("bug", "error", "crash", "null", "guard", "sanitize", "patch", "fix")
FEAT_KEYWORDS = ("feature", "add", "new", "create")
REFACTOR_KEYWORDS = ("refactor", "rename", "cleanup", "restructure")
PERF_KEYWORDS = ("perf", "opt", "fast", "cache")
TEST_KEYWORDS = ("test", "spec", "__tests__")

DOC_EXTENSIONS = ("md", "txt", "rst")
STYLE_EXTENSIONS = ("css", "scss")
SCRIPT_EXTENSIONS = ("ts", "tsx", "js", "jsx", "py")

CONFIG_FILES = frozenset([
    "package.json",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "tsconfig.json",
    "tsconfig.node.json",
    "tsconfig.web.json",
    "vite.config.ts",
    "vite.config.js",
    "electron.vite.config.ts",
    "electron.vite.config.js",
    "electron-builder.yml",
    "postcss.config.js",
    "tailwind.config.js",
    "eslint.config.mjs",
    ".prettierrc.yaml",
    ".prettierignore",
    ".editorconfig",
    "pyproject.toml",
    "setup.cfg",
    "tox.ini",
    "requirements.txt",
    "poetry.lock",
    "uv.lock",
    ".pre-commit-config.yaml",
])

SCOPE_PREFIXES = {
    "src/main/git/": "git",
    "src/main/secure/": "secure",
    "src/main/": "main",
    "src/preload/": "preload",
    "src/renderer/src/store/": "store",
    "src/renderer/": "ui",
}

SCOPE_OBJECTS = {
    "ui": "ui",
    "main": "main process",
    "preload": "preload bridge",
    "secure": "key storage",
    "git": "git engine",
    "store": "state",
}

TYPE_VERBS = {
    "fix": "fix",
    "feat": "add",
    "refactor": "refine",
    "perf": "optimize",
    "style": "refine",
}

MAX_BODY_FILES = 4


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def _extension(path: str) -> str:
    name = _basename(path)
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def _basename(path: str) -> str:
    return _normalize(path).rsplit("/", 1)[-1]


def _is_docs(path: str) -> bool:
    return _extension(path) in DOC_EXTENSIONS


def _is_style(path: str) -> bool:
    return _extension(path) in STYLE_EXTENSIONS


def _is_script(path: str) -> bool:
    return _extension(path) in SCRIPT_EXTENSIONS


def _is_config(path: str) -> bool:
    return _basename(path) in CONFIG_FILES


def _has_keyword(value: str, keywords: Sequence[str]) -> bool:
    return any(keyword in value for keyword in keywords)


def known_scope(path: str) -> Optional[str]:
    """Scope from the prefix table, longest prefix first."""
    normalized = _normalize(path)
    matches = [prefix for prefix in SCOPE_PREFIXES if normalized.startswith(prefix)]
    if not matches:
        return None
    return SCOPE_PREFIXES[max(matches, key=len)]


def get_scope(path: str) -> Optional[str]:
    """Scope from the prefix table, else the first path segment (the file name for root-level files)."""
    scope = known_scope(path)
    if scope:
        return scope
    segments = [s for s in _normalize(path).split("/") if s]
    return segments[0] if segments else None


def _primary_object(paths: List[str], scope: Optional[str]) -> str:
    lowered = [p.lower() for p in paths]
    if any("theme" in p or p.endswith(".css") for p in lowered):
        return "theme tokens"
    if any("store" in p for p in lowered):
        return "state"
    if any("git-service" in p or "watcher" in p for p in lowered):
        return "git engine"
    if any(_is_docs(p) for p in lowered):
        return "docs"
    return SCOPE_OBJECTS.get(scope or "", "changes")


def _commit_type(files: Sequence[ChangeFile], only_config: bool, only_docs: bool, only_styles: bool, has_scripts: bool) -> str:
    lowered = [f.path.lower() for f in files]

    def contains(keywords: Sequence[str]) -> bool:
        return any(_has_keyword(p, keywords) for p in lowered)

    if only_config:
        return "chore"
    if only_docs:
        return "docs"
    if only_styles and not has_scripts:
        return "style"
    if contains(TEST_KEYWORDS):
        return "test"
    if contains(FIX_KEYWORDS):
        return "fix"
    if any(f.status == "A" for f in files) or contains(FEAT_KEYWORDS):
        return "feat"
    if contains(REFACTOR_KEYWORDS):
        return "refactor"
    if contains(PERF_KEYWORDS):
        return "perf"
    return "chore"


def _build_body(files: Sequence[ChangeFile]) -> str:
    lines = []
    for change in files[:MAX_BODY_FILES]:
        action = "Add" if change.status == "A" else "Remove" if change.status == "D" else "Update"
        lines.append(f"- {action} {change.path}")
    return "\n".join(lines)


def _finish_title(title: str) -> str:
    return title[:MAX_TITLE_LENGTH].rstrip().rstrip(".")


def generate_offline_message(branch: Optional[str], files: Sequence[ChangeFile]) -> CommitMessage:
    """
    Builds a conventional commit message from the changed paths.

    Args:
        branch: The current branch. Not used by the current rules; kept so
            callers pass the same inputs a backend would see.
        files: The change set, in status order.

    Returns:
        The same message for the same files and statuses, every time.
    """
    paths = [f.path for f in files]

    only_docs = bool(paths) and all(_is_docs(p) for p in paths)
    only_styles = bool(paths) and all(_is_style(p) for p in paths)
    only_config = bool(paths) and all(_is_config(p) for p in paths)
    has_scripts = any(_is_script(p) for p in paths)

    scopes = [s for s in (get_scope(p) for p in paths) if s]
    ranked = [scope for scope, _ in Counter(scopes).most_common()]
    primary_scope = ranked[0] if ranked else None
    secondary_scope = ranked[1] if len(ranked) > 1 else None
    multiple_scopes = len(ranked) > 1

    commit_type = _commit_type(files, only_config, only_docs, only_styles, has_scripts)

    if only_styles and not has_scripts:
        return CommitMessage(title="style(ui): refine styling")

    if only_docs:
        known = [s for s in (known_scope(p) for p in paths) if s]
        doc_scope = Counter(known).most_common(1)[0][0] if known else None
        doc_name = _basename(paths[0]).rsplit(".", 1)[0].lower() or "docs"
        scope_label = f"({doc_scope})" if doc_scope else ""
        return CommitMessage(title=_finish_title(f"docs{scope_label}: update {doc_name}"))

    if scopes and all(s == "store" for s in scopes):
        return CommitMessage(title="refactor(store): reorganise state")

    if multiple_scopes and primary_scope and secondary_scope:
        title = f"{commit_type}: update {primary_scope} and {secondary_scope}"
    else:
        verb = TYPE_VERBS.get(commit_type, "update")
        scope_label = f"({primary_scope})" if primary_scope else ""
        title = f"{commit_type}{scope_label}: {verb} {_primary_object(paths, primary_scope)}"

    body = _build_body(files) if len(files) > 3 or multiple_scopes else None
    return CommitMessage(title=_finish_title(title), body=body)

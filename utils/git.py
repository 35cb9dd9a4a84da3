import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from utils.errors import GitError


@dataclass(frozen=True)
class FileStatus:
    path: str
    index_status: str
    working_status: str


@dataclass(frozen=True)
class RepoStatus:
    branch: Optional[str]
    files: List[FileStatus] = field(default_factory=list)
    staged_paths: List[str] = field(default_factory=list)


def _run_git(repo_path: str, args: Sequence[str]) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo_path,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
        return result.stdout
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")
    except NotADirectoryError:
        raise GitError(f"Repository path is not a directory: {repo_path}")
    except subprocess.CalledProcessError as e:
        raise GitError(f"git {' '.join(args)} failed: {(e.stderr or '').strip()}") from e


def is_git_repository(repo_path: str = ".") -> bool:
    """Checks if the given directory is inside a Git work tree."""
    try:
        return _run_git(repo_path, ["rev-parse", "--is-inside-work-tree"]).strip() == "true"
    except GitError:
        return False


def get_current_branch_name(repo_path: str = ".") -> Optional[str]:
    """
    Gets the current Git branch name.

    Returns:
        The branch name, or None for a detached HEAD.

    Raises:
        GitError: If the git command fails.
    """
    branch = _run_git(repo_path, ["branch", "--show-current"]).strip()
    return branch or None


def has_commits(repo_path: str = ".") -> bool:
    """Checks whether HEAD points at a commit (false on a freshly initialised repo)."""
    try:
        _run_git(repo_path, ["rev-parse", "--verify", "--quiet", "HEAD"])
        return True
    except GitError:
        return False


def _unquote(path: str) -> str:
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1]
    return path


def parse_porcelain_status(output: str) -> List[FileStatus]:
    """
    Parses `git status --porcelain=v1` output.

    Renames and copies report the destination path.
    """
    files: List[FileStatus] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        index_status, working_status = line[0], line[1]
        path = line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        path = _unquote(path.strip())
        if path:
            files.append(FileStatus(path=path, index_status=index_status, working_status=working_status))
    return files


def get_status(repo_path: str = ".") -> RepoStatus:
    """
    Reads the branch and the pending changes of a repository.

    Raises:
        GitError: If any git command fails.
    """
    branch = get_current_branch_name(repo_path)
    output = _run_git(repo_path, ["status", "--porcelain=v1", "--untracked-files=all"])
    files = parse_porcelain_status(output)
    staged = [f.path for f in files if f.index_status not in (" ", "?", "!")]
    return RepoStatus(branch=branch, files=files, staged_paths=staged)


def get_diff(repo_path: str = ".", args: Sequence[str] = ()) -> str:
    """
    Runs `git diff` with the given arguments.

    Raises:
        GitError: If the git command fails.
    """
    return _run_git(repo_path, ["diff", *args])


def commit(message: str, repo_path: str = ".") -> None:
    """
    Creates a Git commit with the given message.

    Raises:
        GitError: If the git commit command fails.
    """
    _run_git(repo_path, ["commit", "-m", message])

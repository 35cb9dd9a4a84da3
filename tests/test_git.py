import subprocess
import unittest
from unittest.mock import MagicMock, patch

from utils.errors import GitError
from utils.git import (
    FileStatus,
    commit,
    get_current_branch_name,
    get_status,
    is_git_repository,
    parse_porcelain_status,
)


def completed(stdout=""):
    process = MagicMock()
    process.returncode = 0
    process.stdout = stdout
    process.stderr = ""
    return process


class TestPorcelainParsing(unittest.TestCase):

    def test_parse_common_codes(self):
        output = " M src/app.ts\nA  src/new.ts\nD  old.py\n?? notes.txt\n"
        self.assertEqual(parse_porcelain_status(output), [
            FileStatus("src/app.ts", " ", "M"),
            FileStatus("src/new.ts", "A", " "),
            FileStatus("old.py", "D", " "),
            FileStatus("notes.txt", "?", "?"),
        ])

    def test_parse_rename_keeps_destination(self):
        files = parse_porcelain_status("R  src/old name.ts -> src/new name.ts\n")
        self.assertEqual(files, [FileStatus("src/new name.ts", "R", " ")])

    def test_parse_quoted_path(self):
        files = parse_porcelain_status('?? "with space.txt"\n')
        self.assertEqual(files[0].path, "with space.txt")

    def test_parse_ignores_short_lines(self):
        self.assertEqual(parse_porcelain_status("\nM\n"), [])


class TestGitCommands(unittest.TestCase):

    @patch("subprocess.run")
    def test_get_status(self, mock_run):
        # Arrange
        mock_run.side_effect = [
            completed("main\n"),
            completed("M  src/a.ts\n M src/b.ts\n?? c.txt\n"),
        ]

        # Act
        status = get_status("/repo")

        # Assert
        self.assertEqual(status.branch, "main")
        self.assertEqual([f.path for f in status.files], ["src/a.ts", "src/b.ts", "c.txt"])
        self.assertEqual(status.staged_paths, ["src/a.ts"])
        mock_run.assert_called_with(
            ["git", "status", "--porcelain=v1", "--untracked-files=all"],
            cwd="/repo",
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )

    @patch("subprocess.run", return_value=completed("\n"))
    def test_detached_head_has_no_branch(self, mock_run):
        self.assertIsNone(get_current_branch_name("/repo"))

    @patch("subprocess.run", side_effect=FileNotFoundError)
    def test_git_not_found(self, mock_run):
        with self.assertRaises(GitError) as cm:
            get_status("/repo")
        self.assertIn("Git is not installed", str(cm.exception))

    @patch("subprocess.run")
    def test_is_git_repository(self, mock_run):
        mock_run.return_value = completed("true\n")
        self.assertTrue(is_git_repository("/repo"))

        mock_run.side_effect = subprocess.CalledProcessError(128, "git", stderr="fatal: not a git repository")
        self.assertFalse(is_git_repository("/tmp"))

    @patch("subprocess.run")
    def test_commit_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, "git", stderr="nothing to commit")
        with self.assertRaises(GitError) as cm:
            commit("chore: x", repo_path="/repo")
        self.assertIn("nothing to commit", str(cm.exception))


if __name__ == "__main__":
    unittest.main()

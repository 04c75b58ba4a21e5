"""Git diff source - produces diff text and file contents for a branch review"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import git
from git.exc import GitCommandError, GitError

from selfreview.domain.models.file_change import FileChange

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 10 * 1024 * 1024


class DiffSourceError(RuntimeError):
    """A git command failed or the path is not a repository."""

    pass


class GitDiffSource:
    """Computes branch diffs in a working copy through GitPython"""

    def __init__(self, repo_path: Union[str, Path, None] = None):
        """Initialize diff source

        Args:
            repo_path: Working copy root (current directory if None)
        """
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self._repo: Optional[git.Repo] = None

    @property
    def repo(self) -> git.Repo:
        """Repository handle, opened on first use

        Raises:
            DiffSourceError: If repo_path is not the root of a git working copy
        """
        if self._repo is None:
            try:
                self._repo = git.Repo(self.repo_path)
            except GitError as e:
                raise DiffSourceError(f"{self.repo_path} is not a git repository: {e}") from e
        return self._repo

    def _git(self, command: str, *args: str) -> str:
        """Run a git command and return stdout

        Output is decoded as UTF-8 with undecodable bytes replaced.

        Raises:
            DiffSourceError: If git cannot be started or exits non-zero
        """
        method = getattr(self.repo.git, command.replace("-", "_"))
        try:
            output = method(*args, stdout_as_string=False, strip_newline_in_stdout=False)
        except GitError as e:
            raise DiffSourceError(f"git {command} failed: {e}") from e
        if len(output) > MAX_OUTPUT_BYTES:
            logger.warning(f"git {command} produced {len(output)} bytes of output")
        return output.decode("utf-8", errors="replace")

    def current_branch(self) -> str:
        """Name of the checked out branch, "HEAD" when detached"""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return "HEAD"

    def local_branches(self) -> List[str]:
        return [head.name for head in self.repo.heads]

    def ref_exists(self, ref: str) -> bool:
        try:
            self.repo.git.rev_parse("--verify", "--quiet", ref)
            return True
        except GitCommandError:
            return False

    def merge_base(self, base: str, target: str) -> str:
        """Merge base of two refs

        Falls back to the base ref itself when the branches share no history;
        diffing base..target still works for unrelated branches.
        """
        try:
            return self._git("merge-base", base, target).strip()
        except DiffSourceError:
            logger.info(f"No common ancestor for {base} and {target}, diffing against {base}")
            return base

    def _targets_working_tree(self, target: str) -> bool:
        return not target or target == self.current_branch()

    def diff(
        self,
        base: str,
        target: str = "",
        include_uncommitted: bool = True,
        paths: Optional[List[str]] = None,
    ) -> str:
        """Unified diff between the merge base and the target

        Args:
            base: Base branch
            target: Target branch ("" = HEAD, plus the working tree if requested)
            include_uncommitted: Include working tree changes when target is the current checkout
            paths: Optional paths to limit the diff to

        Returns:
            Raw unified diff text
        """
        merge_base = self.merge_base(base, target or "HEAD")
        if self._targets_working_tree(target):
            revision = merge_base if include_uncommitted else f"{merge_base}..HEAD"
        else:
            revision = f"{merge_base}..{target}"

        args = [revision]
        if paths:
            args += ["--", *paths]
        logger.debug(f"Computing diff: git diff {' '.join(args)}")
        return self._git("diff", *args)

    def file_content(self, path: str, ref: Optional[str] = None) -> Optional[str]:
        """Full text of a file at ref, or from the working tree when ref is None"""
        if ref is None:
            full_path = self.repo_path / path
            try:
                return full_path.read_bytes().decode("utf-8", errors="replace")
            except OSError as e:
                logger.debug(f"Cannot read {full_path}: {e}")
                return None
        try:
            return self._git("show", f"{ref}:{path}")
        except DiffSourceError as e:
            logger.debug(f"Cannot load {path} at {ref}: {e}")
            return None

    def resolve_contents(self, files: List[FileChange], target: str = "") -> None:
        """Attach full target-revision text to each non-deleted, non-binary file

        Files whose text cannot be loaded keep new_content=None and are later
        rendered from their raw hunks.
        """
        ref = None if self._targets_working_tree(target) else target
        for file_change in files:
            if file_change.is_deleted or file_change.is_binary:
                continue
            file_change.new_content = self.file_content(file_change.path, ref)

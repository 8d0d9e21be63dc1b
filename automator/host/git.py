"""Git operations on a local repository."""

from __future__ import annotations

from .base import CapabilityBinding
from .models import GitBranch, GitBranches, GitDiff, GitLog, GitStatus


class GitRepo(CapabilityBinding):
    namespace = "git"

    async def diff(self, repo_path: str) -> GitDiff:
        return await self._call_json("getDiff", GitDiff, repo_path)

    async def status(self, repo_path: str) -> str:
        result = await self._call_json("getStatus", GitStatus, repo_path)
        return result.status

    async def branch(self, repo_path: str) -> str:
        result = await self._call_json("getBranch", GitBranch, repo_path)
        return result.branch

    async def commit_log(self, repo_path: str, count: int | None = None) -> str:
        result = await self._call_json("getCommitLog", GitLog, repo_path, count)
        return result.log

    async def add(self, repo_path: str, files: str | None = None) -> str:
        return await self._call("add", repo_path, files)

    async def commit(self, repo_path: str, message: str) -> str:
        return await self._call("commit", repo_path, message)

    async def push(self, repo_path: str) -> str:
        return await self._call("push", repo_path)

    async def pull(self, repo_path: str) -> str:
        return await self._call("pull", repo_path)

    async def fetch(self, repo_path: str) -> str:
        return await self._call("fetch", repo_path)

    async def checkout(self, repo_path: str, branch: str) -> str:
        return await self._call("checkout", repo_path, branch)

    async def create_branch(self, repo_path: str, name: str) -> str:
        return await self._call("createBranch", repo_path, name)

    async def list_branches(self, repo_path: str) -> list[str]:
        result = await self._call_json("listBranches", GitBranches, repo_path)
        return result.branches

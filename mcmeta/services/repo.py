"""输出仓库 - 基于 git 的 OutputRepository 实现

职责:
- 运行前 checkout 目标分支并 hard reset，保证从干净状态开始
- 生成成功后 stage + commit
所有 git 调用经 CommandExecutor 执行，测试时可注入 mock。
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from mcmeta.core.exceptions import RepositoryError, ValidationError
from mcmeta.utils.shell import CommandExecutor, CommandResult, LocalExecutor

logger = logging.getLogger(__name__)

_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@\-]+$")


class GitOutputRepository:
    """输出目录即 git 工作区"""

    def __init__(
        self,
        root: str | Path,
        executor: CommandExecutor | None = None,
        *,
        timeout: int = 300,
    ) -> None:
        self.root = Path(root)
        self._executor = executor or LocalExecutor()
        self.timeout = timeout

    def _git(self, *args: str, check: bool = True) -> CommandResult:
        try:
            result = self._executor.execute(
                ["git", *args], cwd=str(self.root), timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RepositoryError(f"git {args[0]} 无法执行: {e}") from e
        if check and not result.success:
            raise RepositoryError(
                f"git {args[0]} 失败 (rc={result.returncode}): {result.stderr[:300]}"
            )
        return result

    def checkout(self, branch: str) -> None:
        if not branch or not _SAFE_REF_RE.match(branch):
            raise ValidationError(f"分支名包含非法字符: {branch!r}")
        if not (self.root / ".git").exists():
            raise RepositoryError(f"输出目录不是 git 仓库: {self.root}")
        self._git("checkout", branch)
        logger.info("输出仓库已切换分支: %s", branch)

    def hard_reset(self) -> None:
        self._git("reset", "--hard", "HEAD")
        self._git("clean", "-fd")
        logger.info("输出仓库已重置: %s", self.root)

    def stage(self, paths: list[str]) -> None:
        if not paths:
            return
        self._git("add", "-A", "--", *paths)

    def has_changes(self) -> bool:
        return bool(self._git("status", "--porcelain").stdout.strip())

    def commit(self, message: str) -> bool:
        """提交已暂存内容；暂存区为空时不提交并返回 False"""
        staged = self._git("diff", "--cached", "--quiet", check=False)
        if staged.returncode == 0:
            logger.info("输出无变化，跳过提交")
            return False
        if staged.returncode != 1:
            raise RepositoryError(f"git diff 失败 (rc={staged.returncode}): {staged.stderr[:300]}")
        self._git("commit", "-m", message)
        logger.info("输出已提交: %s", message)
        return True

"""流水线数据模型

数据类：
- PipelinePlan: 本次运行的计划
- PipelineReport: 运行报告（步骤、各源同步结果、跳过明细、退出码）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mcmeta.core.models import ExitCode, ReconcileResult


@dataclass
class PipelinePlan:
    """流水线计划 - 声明本次要同步/生成哪些内容"""

    sources: list[str] = field(default_factory=list)   # 空 = 配置中的全部源
    branch: str = ""                                    # 空 = 配置中的 output_branch
    dry_run: bool = False
    reconcile: bool = True
    generate: bool = True
    commit: bool | None = None                          # None = 跟随配置 commit_output


@dataclass
class PipelineReport:
    """流水线运行报告"""

    plan: PipelinePlan
    steps: list[dict[str, Any]] = field(default_factory=list)
    results: dict[str, ReconcileResult] = field(default_factory=dict)
    skipped: dict[str, list[dict[str, str]]] = field(default_factory=dict)
    generated: dict[str, int] = field(default_factory=dict)
    written: list[str] = field(default_factory=list)
    committed: bool = False
    exit_code: ExitCode = ExitCode.SUCCESS
    error: str = ""

    @property
    def failed_sources(self) -> list[str]:
        return [name for name, r in self.results.items() if not r.success]

    @property
    def success(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS

    def fail(self, code: ExitCode, error: str) -> None:
        self.exit_code = code
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        return {
            "exit_code": int(self.exit_code),
            "error": self.error,
            "steps": self.steps,
            "results": {name: r.to_dict() for name, r in self.results.items()},
            "skipped": self.skipped,
            "generated": self.generated,
            "written": self.written,
            "committed": self.committed,
        }

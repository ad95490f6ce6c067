"""流水线编排器 - 协调 7 步

职责：
- 协调步骤顺序，任一步骤失败即终止，后续步骤不执行
- 同步失败时不触碰输出目录；生成在内存完成后才写出
- Ctrl-C 映射为 INTERRUPTED 退出码
"""

from __future__ import annotations

import logging

from mcmeta.core.models import ExitCode
from mcmeta.services.container import ServiceContainer
from mcmeta.services.pipeline.models import PipelinePlan, PipelineReport
from mcmeta.services.pipeline.steps import PipelineSteps

logger = logging.getLogger(__name__)


class Orchestrator:
    """同步 → 生成 → 索引 → 写出 → 提交"""

    def __init__(self, container: ServiceContainer | None = None) -> None:
        self.c = container or ServiceContainer()
        self.steps = PipelineSteps(self.c)

    def run(self, plan: PipelinePlan) -> PipelineReport:
        report = PipelineReport(plan=plan)
        try:
            self._run(plan, report)
        except KeyboardInterrupt:
            report.fail(ExitCode.INTERRUPTED, "运行被中断")
            logger.warning("运行被中断，镜像与输出保持最近一次一致状态")
        logger.info("流水线结束: exit_code=%d", int(report.exit_code))
        return report

    def _run(self, plan: PipelinePlan, report: PipelineReport) -> None:
        s = self.steps
        if not s.recover(report):
            return
        if not s.prepare_output(plan, report):
            return
        if not s.reconcile(plan, report):
            return
        if not s.writes_output(plan):
            return

        files = s.generate(plan, report)
        if files is None:
            return
        files = s.build_index(files, report)
        if files is None:
            return
        if not s.write_output(files, report):
            return
        s.commit(plan, report)

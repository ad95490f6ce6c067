"""流水线步骤实现 - 7 步

步骤顺序：
1. recover - 恢复中断的镜像提交
2. prepare_output - 输出仓库 checkout + hard reset
3. reconcile - 按依赖分批同步各源
4. generate - 由镜像快照并行生成
5. build_index - 汇总生成文件构建索引
6. write_output - 写出到输出目录
7. commit - stage + commit（无变化则跳过）

每个步骤返回 False 表示流水线应终止，退出码已写入报告。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, Iterable

from mcmeta.core.exceptions import (
    CommitFailure,
    ConflictingVersionDefinition,
    MetaError,
    RepositoryError,
)
from mcmeta.core.index_builder import IndexBuilder
from mcmeta.core.models import ExitCode, GeneratedMetaFile, ReconcileResult, Source

if TYPE_CHECKING:
    from mcmeta.generators.base import GeneratorOutput
    from mcmeta.services.container import ServiceContainer
    from mcmeta.services.pipeline.models import PipelinePlan, PipelineReport

logger = logging.getLogger(__name__)

# 生成器遇到异常载荷时可能抛出的内建异常
_PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, IndexError)


def dependency_waves(
    sources: list[Source], depends_on: Callable[[Source], Iterable[Source]],
) -> list[list[Source]]:
    """按依赖拆成若干批次；批内互不依赖，保持给定顺序

    只考虑本次运行包含的依赖，未选中的依赖视为已满足。
    """
    selected = set(sources)
    done: set[Source] = set()
    pending = list(sources)
    waves: list[list[Source]] = []
    while pending:
        wave = [
            s for s in pending
            if all(d in done or d not in selected for d in depends_on(s))
        ]
        if not wave:
            raise MetaError(f"上游源依赖存在环: {[s.value for s in pending]}")
        waves.append(wave)
        done.update(wave)
        pending = [s for s in pending if s not in done]
    return waves


class PipelineSteps:
    """流水线步骤集合"""

    def __init__(self, container: ServiceContainer) -> None:
        self.c = container

    # ---- 计划解析 ----

    def selected_sources(self, plan: PipelinePlan) -> list[Source]:
        """plan.sources 按配置顺序排列；未指定时取配置全部源"""
        configured = [Source(s) for s in self.c.config.sources]
        if not plan.sources:
            return configured
        wanted = {Source(s) for s in plan.sources}
        extra = [s for s in Source if s in wanted and s not in configured]
        return [s for s in configured if s in wanted] + extra

    def commit_enabled(self, plan: PipelinePlan) -> bool:
        if plan.commit is None:
            return self.c.config.commit_output
        return plan.commit

    def writes_output(self, plan: PipelinePlan) -> bool:
        return plan.generate and not plan.dry_run

    # ---- 步骤 ----

    def recover(self, report: PipelineReport) -> bool:
        """步骤1: 恢复上次中断的镜像提交"""
        restored = self.c.mirror.recover()
        report.steps.append({"step": "recover", "status": "done", "restored": restored})
        logger.info("[Step 1] 镜像检查完成, 恢复分区: %s", restored or "无")
        return True

    def prepare_output(self, plan: PipelinePlan, report: PipelineReport) -> bool:
        """步骤2: 输出仓库切到目标分支并清理到干净状态"""
        if not self.writes_output(plan) or not self.commit_enabled(plan):
            report.steps.append({"step": "prepare_output", "status": "skipped"})
            return True
        branch = plan.branch or self.c.config.output_branch
        try:
            self.c.output_repo.checkout(branch)
            self.c.output_repo.hard_reset()
        except MetaError as e:
            report.steps.append({"step": "prepare_output", "status": "failed", "error": str(e)})
            report.fail(ExitCode.COMMIT_FAILED, f"输出仓库准备失败: {e}")
            logger.error("[Step 2] 输出仓库准备失败: %s", e)
            return False
        report.steps.append({"step": "prepare_output", "status": "done", "branch": branch})
        logger.info("[Step 2] 输出仓库就绪: branch=%s", branch)
        return True

    def reconcile(self, plan: PipelinePlan, report: PipelineReport) -> bool:
        """步骤3: 按依赖批次同步；批内可并发"""
        if not plan.reconcile:
            report.steps.append({"step": "reconcile", "status": "skipped"})
            return True
        sources = self.selected_sources(plan)
        waves = dependency_waves(sources, lambda s: self.c.adapter(s).depends_on)
        workers = self.c.config.parallel_sources

        for wave in waves:
            logger.info("[Step 3] 同步批次: %s", [s.value for s in wave])
            if workers == 1 or len(wave) == 1:
                results = [self._reconcile_one(s, plan.dry_run) for s in wave]
            else:
                with ThreadPoolExecutor(max_workers=min(workers, len(wave))) as executor:
                    futures = [executor.submit(self._reconcile_one, s, plan.dry_run) for s in wave]
                    results = [f.result() for f in futures]
            for result in results:
                report.results[result.source.value] = result

        statuses = {name: r.state.value for name, r in report.results.items()}
        failed = report.failed_sources
        report.steps.append({
            "step": "reconcile", "status": "failed" if failed else "done",
            "sources": statuses, "dry_run": plan.dry_run,
        })
        logger.info("[Step 3] 同步完成: %s", statuses)

        if not failed:
            return True
        if self.c.config.abort_on_source_failure:
            report.fail(ExitCode.RECONCILE_FAILED, f"上游源同步失败: {failed}")
            logger.error("[Step 3] 同步失败，跳过生成: %s", failed)
            return False
        report.fail(ExitCode.PARTIAL, f"部分上游源同步失败，沿用上次镜像: {failed}")
        logger.warning("[Step 3] 部分源同步失败，使用其上次镜像继续生成: %s", failed)
        return True

    def _reconcile_one(self, source: Source, dry_run: bool) -> ReconcileResult:
        logger.info("  开始同步: %s", source.value)
        return self.c.reconciler(source).run(dry_run=dry_run)

    def generate(
        self, plan: PipelinePlan, report: PipelineReport,
    ) -> list[GeneratedMetaFile] | None:
        """步骤4: 由全部配置源的镜像快照并行生成

        输出整体重建，因此始终覆盖配置中的全部源，与本次同步了哪些源无关。
        """
        sources = [Source(s) for s in self.c.config.sources]
        workers = self.c.config.generator_workers
        try:
            if workers == 1:
                outputs = [self._generate_one(s) for s in sources]
            else:
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    futures = [executor.submit(self._generate_one, s) for s in sources]
                    outputs = [f.result() for f in futures]
        except (MetaError, OSError, *_PAYLOAD_ERRORS) as e:
            report.steps.append({"step": "generate", "status": "failed", "error": str(e)})
            report.fail(ExitCode.GENERATION_FAILED, f"生成失败: {e}")
            logger.error("[Step 4] 生成失败: %s", e)
            return None

        files: list[GeneratedMetaFile] = []
        for source, out in zip(sources, outputs):
            if out is None:
                report.skipped[source.value] = [{"id": "*", "reason": "镜像为空"}]
                continue
            files.extend(out.files)
            report.generated[source.value] = len(out.files)
            if out.skipped:
                report.skipped[source.value] = out.skipped
        report.steps.append({
            "step": "generate", "status": "done",
            "files": report.generated, "skipped": {k: len(v) for k, v in report.skipped.items()},
        })
        logger.info("[Step 4] 生成完成: %s", report.generated)
        return files

    def _generate_one(self, source: Source) -> GeneratorOutput | None:
        snapshot = self.c.mirror.snapshot(source)
        if not snapshot.entries:
            logger.warning("  %s 镜像为空，跳过生成", source.value)
            return None
        return self.c.generator(source).run(snapshot)

    def build_index(
        self, files: list[GeneratedMetaFile], report: PipelineReport,
    ) -> list[GeneratedMetaFile] | None:
        """步骤5: 汇总全部生成文件，得到包索引与顶层索引"""
        builder = IndexBuilder()
        try:
            index = builder.build(files)
        except ConflictingVersionDefinition as e:
            report.steps.append({"step": "build_index", "status": "failed", "error": str(e)})
            report.fail(ExitCode.GENERATION_FAILED, str(e))
            logger.error("[Step 5] 索引构建失败: %s", e)
            return None
        index_files = builder.render(index)
        report.steps.append({
            "step": "build_index", "status": "done", "packages": len(index.packages),
        })
        logger.info("[Step 5] 索引构建完成: %d 个包", len(index.packages))
        return files + index_files

    def write_output(self, files: list[GeneratedMetaFile], report: PipelineReport) -> bool:
        """步骤6: 写出到输出目录"""
        try:
            report.written = self.c.output_writer.write(files)
        except CommitFailure as e:
            report.steps.append({"step": "write_output", "status": "failed", "error": str(e)})
            report.fail(ExitCode.COMMIT_FAILED, str(e))
            logger.error("[Step 6] 输出写入失败: %s", e)
            return False
        report.steps.append({
            "step": "write_output", "status": "done", "paths": len(report.written),
        })
        logger.info("[Step 6] 输出写入完成: %d 个路径", len(report.written))
        return True

    def commit(self, plan: PipelinePlan, report: PipelineReport) -> bool:
        """步骤7: stage 并提交；无变化不产生提交"""
        if not self.commit_enabled(plan):
            report.steps.append({"step": "commit", "status": "skipped"})
            return True
        repo = self.c.output_repo
        try:
            repo.stage(report.written)
            report.committed = repo.commit(self.c.config.commit_message)
        except RepositoryError as e:
            report.steps.append({"step": "commit", "status": "failed", "error": str(e)})
            report.fail(ExitCode.COMMIT_FAILED, f"提交失败: {e}")
            logger.error("[Step 7] 提交失败: %s", e)
            return False
        report.steps.append({"step": "commit", "status": "done", "committed": report.committed})
        logger.info("[Step 7] 提交%s", "完成" if report.committed else "跳过（无变化）")
        return True

"""单源同步状态机

Idle → LoadingLocal → FetchingRemoteIndex → Diffing → FetchingDeltas → Committing → Done
任一阶段出错 → Failed（终态）

保证:
  - 拉取阶段任一条目失败即停止调度后续拉取，镜像不做任何改动
  - 提交阶段单线程，经 MirrorStore.atomic_write 要么全部生效要么不变
  - dry_run 在 Diffing 之后结束，不拉取也不提交
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from mcmeta.core.diff import TIE_BREAK_REFETCH
from mcmeta.core.exceptions import MetaError, ParseError, PartialFetchFailure
from mcmeta.core.models import (
    DeltaPlan,
    ReconcileResult,
    ReconcileState,
    Source,
    VersionIndex,
    VersionRecord,
)
from mcmeta.core.protocols import MirrorStore
from mcmeta.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

# 上游载荷结构异常时适配器可能抛出的内建异常
_PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, IndexError)


class Reconciler:
    """驱动一个 SourceAdapter 完成一次同步"""

    def __init__(
        self,
        adapter: SourceAdapter,
        mirror: MirrorStore,
        *,
        max_workers: int = 8,
        tie_break: str = TIE_BREAK_REFETCH,
    ) -> None:
        self.adapter = adapter
        self.mirror = mirror
        self.max_workers = max(1, max_workers)
        self.tie_break = tie_break

    @property
    def source(self) -> Source:
        return self.adapter.source

    def _enter(self, result: ReconcileResult, state: ReconcileState) -> None:
        result.state = state
        result.transitions.append(state.value)
        logger.debug("  %s → %s", self.source.value, state.value)

    def run(self, *, dry_run: bool = False) -> ReconcileResult:
        result = ReconcileResult(source=self.source, dry_run=dry_run)
        result.transitions.append(ReconcileState.IDLE.value)
        try:
            self._run(result, dry_run)
        except PartialFetchFailure as e:
            result.failed_ids = e.failed_ids
            result.causes = e.causes
            result.skipped_ids = e.skipped_ids
            self._fail(result, e)
        except MetaError as e:
            self._fail(result, e)
        except _PAYLOAD_ERRORS as e:
            self._fail(result, ParseError(f"{self.source.value}: 上游数据结构异常 - {e!r}"))
        return result

    def _fail(self, result: ReconcileResult, error: MetaError) -> None:
        result.error = str(error)
        result.error_code = error.code
        self._enter(result, ReconcileState.FAILED)
        logger.error("同步失败: %s [%s] %s", self.source.value, error.code, error)

    def _run(self, result: ReconcileResult, dry_run: bool) -> None:
        self._enter(result, ReconcileState.LOADING_LOCAL)
        local = self.mirror.read_index(self.source)
        logger.info("  %s 本地索引: %d 个条目", self.source.value, len(local.entries))

        self._enter(result, ReconcileState.FETCHING_REMOTE_INDEX)
        remote = self.adapter.fetch_remote_index()

        self._enter(result, ReconcileState.DIFFING)
        plan = self._diff(local, remote)
        result.plan = plan
        logger.info("  %s 差异: %s", self.source.value, plan.summary())

        if dry_run:
            self._enter(result, ReconcileState.DONE)
            return

        self._enter(result, ReconcileState.FETCHING_DELTAS)
        records = self._fetch_all(plan.to_fetch)
        result.fetched = sorted(r.id for r in records)
        artifacts = self.adapter.fetch_artifacts(records)
        result.artifacts = sorted(artifacts)

        self._enter(result, ReconcileState.COMMITTING)
        self.mirror.atomic_write(
            self.source, remote.entries, records,
            documents=remote.documents, removed=plan.removed, artifacts=artifacts,
        )
        result.removed = list(plan.removed)
        self._enter(result, ReconcileState.DONE)
        logger.info(
            "同步完成: %s (拉取 %d, 保留 %d, 删除 %d)",
            self.source.value, len(records), len(plan.to_keep), len(plan.removed),
        )

    def _diff(self, local: VersionIndex, remote: VersionIndex) -> DeltaPlan:
        plan = self.adapter.reconcile(local, remote, self.tie_break)
        kept: list[str] = []
        for entry_id in plan.to_keep:
            if self.mirror.has_record(self.source, entry_id):
                kept.append(entry_id)
            else:
                plan.missing.append(entry_id)
        plan.to_keep = kept
        return plan

    # ---- 增量拉取 ----

    def _fetch_all(self, ids: list[str]) -> list[VersionRecord]:
        """拉取全部条目；首个失败后不再调度新任务，最终抛 PartialFetchFailure"""
        if not ids:
            return []
        stop = threading.Event()
        lock = threading.Lock()
        records: dict[str, VersionRecord] = {}
        causes: dict[str, str] = {}
        skipped: list[str] = []

        def fetch_one(entry_id: str) -> None:
            if stop.is_set():
                with lock:
                    skipped.append(entry_id)
                return
            try:
                record = self.adapter.fetch(entry_id)
                if record.id != entry_id or record.source != self.source:
                    raise ParseError(
                        f"{self.source.value}: 拉取 {entry_id} 得到不匹配的记录 {record.id}",
                        source=self.source.value, entry_id=entry_id,
                    )
            except (MetaError, *_PAYLOAD_ERRORS) as e:
                stop.set()
                logger.error("  拉取失败: %s/%s - %s", self.source.value, entry_id, e)
                with lock:
                    causes[entry_id] = str(e)
                return
            with lock:
                records[entry_id] = record
            logger.info("  已拉取: %s/%s", self.source.value, entry_id)

        if self.max_workers == 1:
            for entry_id in ids:
                fetch_one(entry_id)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                for future in [executor.submit(fetch_one, i) for i in ids]:
                    future.result()

        if causes:
            if skipped:
                logger.warning("  %s: 因前序失败跳过 %d 个条目", self.source.value, len(skipped))
            raise PartialFetchFailure(self.source.value, list(causes), causes, skipped)
        return [records[i] for i in ids]

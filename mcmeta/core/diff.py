"""索引差异计算

对比本地与远端索引，得到需要拉取的条目集合。

规则（按条目 id）:
  - 仅远端存在                       → new
  - 两边都有，远端时间严格更新       → updated
  - 时间相同（或都缺失）但指纹不同   → ambiguous，由 tie_break 决定是否拉取
  - 其余（包括远端时间更旧）         → keep
  - 仅本地存在                       → removed
"""

from __future__ import annotations

import logging

from mcmeta.core.exceptions import ValidationError
from mcmeta.core.models import DeltaPlan, VersionIndex

logger = logging.getLogger(__name__)

TIE_BREAK_REFETCH = "refetch"
TIE_BREAK_KEEP = "keep"


def compute_delta(
    local: VersionIndex,
    remote: VersionIndex,
    tie_break: str = TIE_BREAK_REFETCH,
) -> DeltaPlan:
    """计算差异计划；结果中每个列表按 id 排序，保证多次运行一致"""
    if tie_break not in (TIE_BREAK_REFETCH, TIE_BREAK_KEEP):
        raise ValidationError(f"未知 tie_break 策略: {tie_break}")

    plan = DeltaPlan(source=remote.source)
    local_by_id = local.by_id()
    remote_by_id = remote.by_id()

    for entry_id in sorted(remote_by_id):
        rem = remote_by_id[entry_id]
        loc = local_by_id.get(entry_id)
        if loc is None:
            plan.new.append(entry_id)
            continue

        lt, rt = loc.release_time, rem.release_time
        if rt is not None and (lt is None or rt > lt):
            plan.updated.append(entry_id)
        elif lt == rt and loc.fingerprint() != rem.fingerprint():
            if tie_break == TIE_BREAK_REFETCH:
                plan.ambiguous.append(entry_id)
            else:
                logger.debug("  %s: 指纹不同但时间相同，按 keep 策略保留", entry_id)
                plan.to_keep.append(entry_id)
        else:
            plan.to_keep.append(entry_id)

    plan.removed = sorted(set(local_by_id) - set(remote_by_id))
    return plan

"""流水线编排模块

拆分说明：
- models.py: 计划与报告数据模型
- steps.py: 7 个步骤实现
- orchestrator.py: 协调器
"""

from mcmeta.services.pipeline.models import PipelinePlan, PipelineReport
from mcmeta.services.pipeline.orchestrator import Orchestrator
from mcmeta.services.pipeline.steps import PipelineSteps, dependency_waves

__all__ = [
    "Orchestrator",
    "PipelinePlan",
    "PipelineReport",
    "PipelineSteps",
    "dependency_waves",
]

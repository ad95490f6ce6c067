"""CLI - 完整更新与重新生成"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from mcmeta.cli import _echo_json, _svc
from mcmeta.core.models import Source

if TYPE_CHECKING:
    from mcmeta.services.pipeline import PipelinePlan


def register(group: click.Group) -> None:
    group.add_command(update)
    group.add_command(generate)


def _run_pipeline(plan: PipelinePlan, as_json: bool) -> None:
    from mcmeta.services.pipeline import Orchestrator
    report = Orchestrator(_svc()).run(plan)
    if as_json:
        _echo_json(report.to_dict())
    else:
        for name, result in report.results.items():
            line = f"  {name}: {result.state.value}"
            if result.plan is not None:
                line += f" {result.plan.summary()}"
            if result.error:
                line += f" - {result.error}"
            click.echo(line)
        for name, items in report.skipped.items():
            click.echo(f"  {name}: 跳过 {len(items)} 个版本")
        if report.written:
            click.echo(f"  写出 {len(report.written)} 个路径, 提交: {'是' if report.committed else '否'}")
        if report.error:
            click.echo(f"错误: {report.error}", err=True)
    click.get_current_context().exit(int(report.exit_code))


@click.command()
@click.option(
    "--source", "-s", "sources", multiple=True, type=click.Choice(Source.values()),
    help="只同步指定源（可多次指定），生成始终覆盖全部配置源",
)
@click.option("--branch", "-b", default="", help="输出仓库分支（默认取配置）")
@click.option("--dry-run", is_flag=True, help="只计算差异，不拉取、不生成、不提交")
@click.option("--no-commit", is_flag=True, help="写出文件但不提交")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 输出运行报告")
def update(
    sources: tuple[str, ...], branch: str, dry_run: bool, no_commit: bool, as_json: bool,
) -> None:
    """同步上游并重新生成输出"""
    from mcmeta.services.pipeline import PipelinePlan
    _run_pipeline(PipelinePlan(
        sources=list(sources), branch=branch, dry_run=dry_run,
        commit=False if no_commit else None,
    ), as_json)


@click.command()
@click.option("--branch", "-b", default="", help="输出仓库分支（默认取配置）")
@click.option("--no-commit", is_flag=True, help="写出文件但不提交")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 输出运行报告")
def generate(branch: str, no_commit: bool, as_json: bool) -> None:
    """不联网，仅由当前镜像重新生成输出"""
    from mcmeta.services.pipeline import PipelinePlan
    _run_pipeline(PipelinePlan(
        branch=branch, reconcile=False, commit=False if no_commit else None,
    ), as_json)

"""CLI - 镜像同步与查看"""

from __future__ import annotations

import click

from mcmeta.cli import _echo_json, _svc
from mcmeta.core.models import ExitCode, Source


def register(group: click.Group) -> None:
    group.add_command(reconcile)
    group.add_command(status)
    group.add_command(diff)


_source_option = click.option(
    "--source", "-s", "sources", multiple=True, type=click.Choice(Source.values()),
    help="只处理指定源（可多次指定）",
)


@click.command()
@_source_option
@click.option("--dry-run", is_flag=True, help="只计算差异，不拉取、不提交")
@click.option("--json", "as_json", is_flag=True, help="以 JSON 输出运行报告")
def reconcile(sources: tuple[str, ...], dry_run: bool, as_json: bool) -> None:
    """只同步镜像，不生成输出"""
    from mcmeta.services.pipeline import Orchestrator, PipelinePlan
    report = Orchestrator(_svc()).run(PipelinePlan(
        sources=list(sources), dry_run=dry_run, generate=False,
    ))
    if as_json:
        _echo_json(report.to_dict())
    else:
        for name, result in report.results.items():
            click.echo(f"  {name}: {result.state.value} 拉取 {len(result.fetched)}, 删除 {len(result.removed)}")
            if result.error:
                click.echo(f"    {result.error}", err=True)
    click.get_current_context().exit(int(report.exit_code))


@click.command()
@_source_option
def status(sources: tuple[str, ...]) -> None:
    """查看各源镜像条目数与缺失记录数"""
    svc = _svc()
    selected = [Source(s) for s in (sources or svc.config.sources)]
    for source in selected:
        index = svc.mirror.read_index(source)
        missing = [e.id for e in index.entries if not svc.mirror.has_record(source, e.id)]
        click.echo(f"  {source.value}: {len(index.entries)} 个条目, 缺失记录 {len(missing)}")


@click.command()
@_source_option
@click.option("--verbose", "-v", is_flag=True, help="列出每个待拉取条目")
def diff(sources: tuple[str, ...], verbose: bool) -> None:
    """对比远端索引与本地镜像（不拉取、不提交）"""
    svc = _svc()
    selected = [Source(s) for s in (sources or svc.config.sources)]
    failed = False
    for source in selected:
        result = svc.reconciler(source).run(dry_run=True)
        if not result.success or result.plan is None:
            failed = True
            click.echo(f"  {source.value}: 失败 - {result.error}", err=True)
            continue
        plan = result.plan
        click.echo(f"  {source.value}: {plan.summary()}")
        if verbose:
            for label, ids in (
                ("new", plan.new), ("updated", plan.updated), ("ambiguous", plan.ambiguous),
                ("missing", plan.missing), ("removed", plan.removed),
            ):
                for entry_id in ids:
                    click.echo(f"    [{label}] {entry_id}")
    if failed:
        click.get_current_context().exit(int(ExitCode.RECONCILE_FAILED))

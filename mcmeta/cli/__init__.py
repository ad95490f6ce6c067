"""mcmeta 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import json
import os
from typing import Any

import click
import yaml

from mcmeta import __version__
from mcmeta.core.config import init_config
from mcmeta.core.exceptions import ConfigError
from mcmeta.services.container import get_container, reset_container
from mcmeta.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True))


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default="configs/default.yml",
    help="配置文件路径（不存在时使用默认配置）",
)
def main(config_path: str) -> None:
    """mcmeta - Minecraft 元数据同步与生成"""
    setup_logging(
        level=os.getenv("MCMETA_LOG_LEVEL", "INFO"),
        json_output=os.getenv("MCMETA_LOG_JSON", "") == "1",
    )
    try:
        init_config(config_path)
    except (ConfigError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"配置加载失败: {e}") from e
    reset_container()


# 注册各领域子命令
from mcmeta.cli.cmd_mirror import register as _reg_mirror  # noqa: E402
from mcmeta.cli.cmd_update import register as _reg_update  # noqa: E402

_reg_update(main)
_reg_mirror(main)

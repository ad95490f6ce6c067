"""统一异常体系

所有业务异常继承 MetaError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示并映射退出码，编排器据此区分失败类别。

分类:
  - NetworkError:  网络瞬时错误，由 HTTP 客户端重试，重试耗尽后上抛
  - ParseError:    上游数据格式错误，对该条目致命，中止所属源本轮同步
  - PartialFetchFailure: 增量拉取中有条目失败，所属源本轮不提交镜像
  - ConflictingVersionDefinition: 两个生成文件对同一版本定义不一致，中止索引生成
  - CommitFailure: 镜像或输出写入失败，回滚到最近一次一致快照
"""

from __future__ import annotations


class MetaError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(MetaError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(MetaError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class NetworkError(MetaError):
    """网络请求失败（超时 / 404 / 5xx / 连接失败）"""

    code = "NETWORK_ERROR"

    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    CONNECTION = "connection"

    def __init__(self, message: str, *, url: str = "", kind: str = CONNECTION) -> None:
        super().__init__(message)
        self.url = url
        self.kind = kind


class ParseError(MetaError):
    """上游数据无法解析或不符合预期结构"""

    code = "PARSE_ERROR"

    def __init__(self, message: str, *, source: str = "", entry_id: str = "") -> None:
        super().__init__(message)
        self.source = source
        self.entry_id = entry_id


class PartialFetchFailure(MetaError):
    """增量拉取失败: 记录失败条目，所属源本轮不提交"""

    code = "PARTIAL_FETCH_FAILURE"

    def __init__(
        self, source: str, failed_ids: list[str],
        causes: dict[str, str] | None = None,
        skipped_ids: list[str] | None = None,
    ) -> None:
        self.source = source
        self.failed_ids = sorted(failed_ids)
        self.causes = causes or {}
        # 首个失败后未再调度的条目
        self.skipped_ids = sorted(skipped_ids or [])
        super().__init__(
            f"{source}: {len(self.failed_ids)} 个条目拉取失败: "
            f"{', '.join(self.failed_ids)}"
        )


class ConflictingVersionDefinition(MetaError):
    """同一 (package_id, version_id) 出现内容不同的两份定义"""

    code = "CONFLICTING_VERSION"

    def __init__(self, package_id: str, version_id: str, paths: list[str] | None = None) -> None:
        self.package_id = package_id
        self.version_id = version_id
        self.paths = paths or []
        super().__init__(
            f"版本定义冲突: {package_id}@{version_id} ({', '.join(self.paths)})"
        )


class CommitFailure(MetaError):
    """镜像或输出写入失败（已回滚）"""

    code = "COMMIT_FAILURE"


class RepositoryError(MetaError):
    """输出仓库的版本控制操作失败"""

    code = "REPOSITORY_ERROR"

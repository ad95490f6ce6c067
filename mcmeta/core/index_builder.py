"""索引构建

只依据本轮生成的文件集合计算索引，不读取任何历史输出:
  - 按 package_id 分组版本文件
  - 每个包内版本按 release_time 降序，相同时间按 id 升序，缺少时间的排在最后
  - 同一 (package_id, version_id) 内容一致时去重，不一致抛 ConflictingVersionDefinition
  - 输出每个包的 <uid>/index.json 与顶层 index.json
"""

from __future__ import annotations

import hashlib
import logging
from collections import defaultdict

from mcmeta.core.exceptions import ConflictingVersionDefinition
from mcmeta.core.models import GeneratedMetaFile, IndexFile, IndexVersion, PackageIndex
from mcmeta.utils.json_io import canonical_dumps
from mcmeta.utils.timeutil import parse_time

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
INDEX_PATH = "index.json"


def version_sort_key(v: IndexVersion) -> tuple:
    if v.release_time is None:
        return (1, 0.0, v.version_id)
    return (0, -v.release_time.timestamp(), v.version_id)


class IndexBuilder:
    """由生成文件集合构建包索引与顶层索引"""

    def build(self, files: list[GeneratedMetaFile]) -> IndexFile:
        versions: dict[str, dict[str, GeneratedMetaFile]] = defaultdict(dict)
        packages: dict[str, GeneratedMetaFile] = {}

        for f in files:
            if f.kind == "package":
                if f.package_id in packages and packages[f.package_id].sha256 != f.sha256:
                    raise ConflictingVersionDefinition(
                        f.package_id, "package.json", [packages[f.package_id].path, f.path],
                    )
                packages[f.package_id] = f
            elif f.kind == "version":
                seen = versions[f.package_id].get(f.version_id)
                if seen is not None:
                    if seen.sha256 != f.sha256:
                        raise ConflictingVersionDefinition(
                            f.package_id, f.version_id, [seen.path, f.path],
                        )
                    logger.debug("  重复的相同版本定义已去重: %s@%s", f.package_id, f.version_id)
                    continue
                versions[f.package_id][f.version_id] = f

        index = IndexFile(format_version=FORMAT_VERSION)
        for uid in sorted(set(versions) | set(packages)):
            pkg_file = packages.get(uid)
            recommended = set((pkg_file.content.get("recommended") or []) if pkg_file else [])
            entries = [
                IndexVersion(
                    version_id=vid,
                    version_type=vf.content.get("type", ""),
                    release_time=parse_time(vf.content.get("releaseTime")),
                    sha256=vf.sha256,
                    requires=vf.content.get("requires") or [],
                    recommended=vid in recommended,
                    volatile=bool(vf.content.get("volatile")),
                )
                for vid, vf in versions.get(uid, {}).items()
            ]
            entries.sort(key=version_sort_key)
            name = pkg_file.content.get("name") if pkg_file else None
            if not name and entries:
                name = versions[uid][entries[0].version_id].content.get("name", uid)
            package = PackageIndex(package_id=uid, name=name or uid, versions=entries)
            package.sha256 = hashlib.sha256(
                canonical_dumps(self._package_content(package)).encode("utf-8")
            ).hexdigest()
            index.packages.append(package)

        logger.info(
            "索引构建完成: %d 个包, %d 个版本",
            len(index.packages), sum(len(p.versions) for p in index.packages),
        )
        return index

    @staticmethod
    def _package_content(package: PackageIndex) -> dict:
        return {
            "formatVersion": FORMAT_VERSION,
            "name": package.name,
            "uid": package.package_id,
            "versions": [v.to_dict() for v in package.versions],
        }

    def render(self, index: IndexFile) -> list[GeneratedMetaFile]:
        """索引转为待写出的文件: 每包 index.json + 顶层 index.json"""
        out = [
            GeneratedMetaFile(
                package_id=p.package_id,
                path=f"{p.package_id}/index.json",
                content=self._package_content(p),
                kind="index",
            )
            for p in index.packages
        ]
        out.append(GeneratedMetaFile(
            package_id="", path=INDEX_PATH, content=index.to_dict(), kind="index",
        ))
        return out

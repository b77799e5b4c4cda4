from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

import yaml

from ..errors import CorruptRecord, NotFound, WriteFailed
from ..models import VersionRecord


@dataclass(slots=True)
class FileVersionStore:
    """
    默认状态存储：单个 YAML 文件，内容形如

        version: '4.2.1'

    写入策略：
    - 先写同目录临时文件，flush + fsync 后 os.replace 覆盖目标文件
    - 因此任意时刻文件要么是旧记录，要么是新记录，不会出现半截内容
    """

    path: str

    def load(self) -> VersionRecord:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError as e:
            raise NotFound(f"no version record at {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptRecord(f"version record unreadable: path={self.path} error={e}") from e

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CorruptRecord(f"version record is not valid YAML: path={self.path}") from e

        if not isinstance(raw, dict):
            raise CorruptRecord(f"Expected mapping in {self.path}, got {type(raw).__name__}")
        version = raw.get("version")
        if not isinstance(version, str):
            # 未加引号的 1.10 会被 YAML 解析成 float，直接 str() 会丢信息，这里宁可报错。
            raise CorruptRecord(f"Expected string version in {self.path}, got {type(version).__name__}")
        return VersionRecord(version=version)

    def save(self, version: str) -> None:
        data = yaml.safe_dump({"version": version}, allow_unicode=True, default_flow_style=False)
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path: str | None = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".version-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise WriteFailed(f"failed to write version record: path={self.path} error={e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

"""应用设置模型."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.constants import DEFAULT_EXPORT_DIR, DEFAULT_REMOVER_TIMEOUT, LOG_DIR


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量（TBI_ 前缀）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        log_dir: 日志目录
        remover_type: 抠图服务类型
        remover_api_url: 抠图服务地址
        remover_api_key: 抠图服务密钥
        remover_timeout: 抠图请求超时（秒）
        remover_proxy: 代理设置
        export_dir: 导出目录
        font_dirs: 额外的字体搜索目录
    """

    model_config = SettingsConfigDict(
        env_prefix="TBI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 日志配置
    log_level: str = Field(default="INFO", description="日志级别")
    log_dir: Optional[Path] = Field(default=LOG_DIR, description="日志目录")

    # 抠图服务配置
    remover_type: str = Field(default="external_api", description="抠图服务类型")
    remover_api_url: Optional[str] = Field(
        default=None,
        description="抠图服务地址",
    )
    remover_api_key: str = Field(default="", description="抠图服务密钥")
    remover_timeout: int = Field(
        default=DEFAULT_REMOVER_TIMEOUT,
        ge=1,
        le=600,
        description="抠图请求超时",
    )
    remover_proxy: Optional[str] = Field(default=None, description="代理设置")

    # 导出配置
    export_dir: Path = Field(default=DEFAULT_EXPORT_DIR, description="导出目录")

    # 字体配置
    font_dirs: list[Path] = Field(default_factory=list, description="额外字体目录")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def segmentation_enabled(self) -> bool:
        """是否配置了抠图服务."""
        return bool(self.remover_api_url)

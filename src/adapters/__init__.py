"""Platform adapter factory and registry."""

from __future__ import annotations

from markflow.adapters.base import PlatformAdapter, ValidationError, ValidationSeverity
from markflow.adapters.wechat import WeChatStyleAdapter
from markflow.adapters.zhihu import ZhihuStyleAdapter
from markflow.config import MarkflowConfig
from markflow.content.models import Platform
from markflow.errors import ConfigurationError


def create_adapter(
    platform: Platform | str,
    config: MarkflowConfig | None = None,
) -> PlatformAdapter:
    """Create an adapter for the given platform.

    Args:
        platform: The target platform.
        config: Supplies limits and toggles; defaults when omitted.

    Returns:
        A PlatformAdapter instance for the platform.

    Raises:
        ConfigurationError: If the platform is unknown.
    """
    if isinstance(platform, str):
        try:
            platform = Platform(platform.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown platform: {platform!r}") from exc

    config = config or MarkflowConfig()

    if platform is Platform.WECHAT:
        return WeChatStyleAdapter(
            max_content_length=config.wechat.max_content_length,
            title_max_length=config.wechat.title_max_length,
            references_heading=config.wechat.references_heading,
        )
    return ZhihuStyleAdapter(
        math_enabled=config.zhihu.enable_math,
        code_theme=config.zhihu.code_theme,
        max_content_length=config.zhihu.max_content_length,
    )


__all__ = [
    "PlatformAdapter",
    "ValidationError",
    "ValidationSeverity",
    "WeChatStyleAdapter",
    "ZhihuStyleAdapter",
    "create_adapter",
]
